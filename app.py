from infrastructure.auth_engine import (
    AuthEngineStack,
)
from infrastructure.config import (
    AuthEngineConfig,
    WebAppConfig,
)
from infrastructure.web_app import (
    WebAppStack,
)
from aws_cdk import (
    App,
    Environment,
)
from os import (
    getenv,
)

app = App()
env = Environment(
    account=getenv("CDK_DEFAULT_ACCOUNT"),
    region=getenv("CDK_DEFAULT_REGION"),
)

WebAppStack(
    app,
    "CdkStack",
    config=WebAppConfig.from_context(app.node),
    description="Web app bucket served through CloudFront",
    env=env,
)
AuthEngineStack(
    app,
    "MyStack",
    config=AuthEngineConfig.from_context(app.node),
    description="Authentication engine API, storage and cache",
    env=env,
)

app.synth()
