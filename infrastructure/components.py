from aws_cdk import (
    RemovalPolicy,
    aws_apigateway as apigateway,
    aws_cognito as cognito,
    aws_dynamodb as dynamodb,
    aws_ec2 as ec2,
    aws_elasticache as elasticache,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import (
    Construct,
)
from typing import (
    Dict,
    List,
    Optional,
)

CORS_ALLOW_HEADERS = [
    "Content-Type",
    "X-Amz-Date",
    "Authorization",
    "X-Api-Key",
]
CORS_ALLOW_METHODS = [
    "POST",
]
LAMBDA_ACTIONS = [
    "dynamodb:*",
    "cognito-idp:*",
    "elasticache:*",
    "logs:*",
]


class ApiGatewayConstruct(Construct):
    """
    REST API proxying every request to a single Lambda function.

    Only POST is exposed, on the root resource, with CORS preflight
    answered by API Gateway itself.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        rest_api_name: str,
        api_gateway_name: str,
        allowed_origins: List[str],
        lambda_function: lambda_.IFunction,
        stage_name: str = "prod",
        description: Optional[str] = None,
    ) -> None:
        super().__init__(scope, id)

        self.api_gateway = apigateway.RestApi(
            self,
            api_gateway_name,
            cloud_watch_role=True,
            cloud_watch_role_removal_policy=RemovalPolicy.DESTROY,
            default_cors_preflight_options=apigateway.CorsOptions(
                allow_credentials=True,
                allow_headers=CORS_ALLOW_HEADERS,
                allow_methods=CORS_ALLOW_METHODS,
                allow_origins=allowed_origins,
            ),
            default_integration=apigateway.LambdaIntegration(lambda_function),
            default_method_options=apigateway.MethodOptions(
                authorization_type=apigateway.AuthorizationType.NONE,
                method_responses=[
                    apigateway.MethodResponse(
                        status_code="200",
                    ),
                ],
                operation_name="ServiceRequest",
                request_parameters={
                    "method.request.header.Authorization": True,
                    "method.request.header.Content-Type": True,
                    "method.request.header.Custom-Header": True,
                    "method.request.querystring.myParam": True,
                },
            ),
            deploy_options=apigateway.StageOptions(
                data_trace_enabled=True,
                logging_level=apigateway.MethodLoggingLevel.INFO,
                metrics_enabled=True,
                stage_name=stage_name,
            ),
            description=description or "",
            endpoint_export_name="ServiceRequestAPI",
            fail_on_warnings=True,
            rest_api_name=rest_api_name,
            retain_deployments=False,
        )

        # A REST API without methods cannot be deployed
        self.api_gateway.root.add_method("POST")


class AuthLambdaConstruct(Construct):

    def __init__(
        self,
        scope: Construct,
        id: str,
        function_name: str,
        handler: str,
        code_path: str,
        vpc: ec2.IVpc,
        security_groups: List[ec2.ISecurityGroup],
        environment: Dict[str, str],
        runtime: lambda_.Runtime,
        log_group: Optional[logs.ILogGroup] = None,
        layers: Optional[List[lambda_.ILayerVersion]] = None,
    ) -> None:
        super().__init__(scope, id)

        self.lambda_function = lambda_.Function(
            self,
            function_name,
            code=lambda_.Code.from_asset(code_path),
            environment=environment,
            handler=handler,
            layers=layers,
            log_group=log_group,
            runtime=runtime,
            security_groups=security_groups,
            vpc=vpc,
        )

        self.lambda_function.add_to_role_policy(
            iam.PolicyStatement(
                actions=LAMBDA_ACTIONS,
                resources=["*"],
            )
        )


class DynamoDBConstruct(Construct):

    def __init__(
        self,
        scope: Construct,
        id: str,
        table_name: str,
        partition_key: dynamodb.Attribute,
    ) -> None:
        super().__init__(scope, id)

        self.table = dynamodb.Table(
            self,
            table_name,
            partition_key=partition_key,
            # Table is dropped together with the stack
            removal_policy=RemovalPolicy.DESTROY,
            table_name=table_name,
        )


class CognitoConstruct(Construct):

    def __init__(
        self,
        scope: Construct,
        id: str,
        user_pool_name: str,
        client_name: str,
    ) -> None:
        super().__init__(scope, id)

        self.user_pool = cognito.UserPool(
            self,
            user_pool_name,
            self_sign_up_enabled=True,
            user_pool_name=user_pool_name,
        )
        self.user_pool_client = cognito.UserPoolClient(
            self,
            client_name,
            user_pool=self.user_pool,
        )


class ElastiCacheConstruct(Construct):
    """
    Single cache cluster placed in the private subnets of the given VPC.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        vpc: ec2.IVpc,
        security_group: ec2.ISecurityGroup,
        cache_cluster_id: str,
        cache_node_type: str = "cache.t2.micro",
        engine: str = "redis",
        num_cache_nodes: int = 1,
    ) -> None:
        super().__init__(scope, id)

        self.subnet_group = elasticache.CfnSubnetGroup(
            self,
            "SubnetGroup",
            description=f"Subnet group for {cache_cluster_id}",
            subnet_ids=[subnet.subnet_id for subnet in vpc.private_subnets],
        )

        self.cache_cluster = elasticache.CfnCacheCluster(
            self,
            cache_cluster_id,
            cache_node_type=cache_node_type,
            cache_subnet_group_name=self.subnet_group.ref,
            cluster_name=cache_cluster_id,
            engine=engine,
            num_cache_nodes=num_cache_nodes,
            vpc_security_group_ids=[security_group.security_group_id],
        )


class CloudWatchConstruct(Construct):

    def __init__(
        self,
        scope: Construct,
        id: str,
        log_group_name: str,
        retention: logs.RetentionDays = logs.RetentionDays.ONE_MONTH,
    ) -> None:
        super().__init__(scope, id)

        self.log_group = logs.LogGroup(
            self,
            log_group_name,
            log_group_name=log_group_name,
            removal_policy=RemovalPolicy.DESTROY,
            retention=retention,
        )
