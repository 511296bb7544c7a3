from awslambdaric.lambda_context import (
    LambdaContext,
)
from pytest import (
    fixture,
)
from time import (
    time,
)


@fixture
def context() -> LambdaContext:
    context = LambdaContext(
        client_context=None,
        cognito_identity=None,
        epoch_deadline_time_in_ms=int(time() * 1000) + 30000,
        invoke_id="6f1a9c1e-6d0e-4d5b-9a57-1e1f4f0c2b7a",
        invoked_function_arn="arn:aws:lambda:us-east-1:012356789012:function:AuthLambdaFunction",
    )

    yield context
