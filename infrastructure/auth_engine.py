from aws_cdk import (
    Aws,
    CfnOutput,
    Stack,
    aws_dynamodb as dynamodb,
    aws_ec2 as ec2,
    aws_lambda as lambda_,
)
from constructs import (
    Construct,
)
from infrastructure.components import (
    ApiGatewayConstruct,
    AuthLambdaConstruct,
    CloudWatchConstruct,
    CognitoConstruct,
    DynamoDBConstruct,
    ElastiCacheConstruct,
)
from infrastructure.config import (
    AuthEngineConfig,
)
from typing import (
    Optional,
)

POWERTOOLS_ACCOUNT = "017000801446"


def powertools_layer_arn(config: AuthEngineConfig) -> str:
    # PYTHON_3_12 -> python312
    python_version = config.runtime.lower().replace("_", "", 1).replace("_", "")

    return (
        f"arn:aws:lambda:{Aws.REGION}:{POWERTOOLS_ACCOUNT}:layer:"
        f"AWSLambdaPowertoolsPythonV3-{python_version}-x86_64:"
        f"{config.powertools_layer_version}"
    )


class AuthEngineStack(Stack):
    """
    Authentication service: a Lambda function behind a REST API, backed by
    a DynamoDB table, a Cognito user pool and a Redis cache, all inside a
    dedicated VPC.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: Optional[AuthEngineConfig] = None,
        **kwargs,
    ) -> None:
        if config is not None:
            config.validate()

        super().__init__(scope, construct_id, **kwargs)

        if config is None:
            config = AuthEngineConfig.from_context(self.node)

        self.config = config

        # Network
        vpc = ec2.Vpc(
            self,
            "Vpc",
            max_azs=config.max_azs,
            nat_gateways=config.nat_gateways,
        )
        security_group = ec2.SecurityGroup(
            self,
            "SecurityGroup",
            allow_all_outbound=True,
            vpc=vpc,
        )

        # Storage and identity
        dynamo_db = DynamoDBConstruct(
            self,
            "DynamoDBConstruct",
            partition_key=dynamodb.Attribute(
                name=config.partition_key_name,
                type=config.attribute_type,
            ),
            table_name=config.table_name,
        )
        cognito_user_pool = CognitoConstruct(
            self,
            "CognitoConstruct",
            client_name=config.user_pool_client_name,
            user_pool_name=config.user_pool_name,
        )
        elasti_cache_cluster = ElastiCacheConstruct(
            self,
            "ElastiCacheConstruct",
            cache_cluster_id=config.cache_cluster_id,
            cache_node_type=config.cache_node_type,
            engine=config.cache_engine,
            num_cache_nodes=config.num_cache_nodes,
            security_group=security_group,
            vpc=vpc,
        )
        cloud_watch_log_group = CloudWatchConstruct(
            self,
            "CloudWatchConstruct",
            log_group_name=config.log_group_name,
            retention=config.retention_days,
        )

        # Compute
        powertools_layer = lambda_.LayerVersion.from_layer_version_arn(
            self,
            "PowertoolsLayer",
            powertools_layer_arn(config),
        )
        auth_lambda = AuthLambdaConstruct(
            self,
            "AuthLambdaConstruct",
            code_path=config.code_path,
            environment={
                "ALLOWED_ORIGINS": ",".join(config.allowed_origins),
                "CACHE_CLUSTER_ID": elasti_cache_cluster.cache_cluster.ref,
                "DYNAMODB_TABLE": dynamo_db.table.table_name,
                "LOG_GROUP_NAME": cloud_watch_log_group.log_group.log_group_name,
                "LOG_LEVEL": config.log_level,
                "USER_POOL_ID": cognito_user_pool.user_pool.user_pool_id,
            },
            function_name=config.function_name,
            handler=config.handler,
            layers=[powertools_layer],
            log_group=cloud_watch_log_group.log_group,
            runtime=config.lambda_runtime,
            security_groups=[security_group],
            vpc=vpc,
        )

        # API
        api_gateway = ApiGatewayConstruct(
            self,
            "ApiGatewayConstruct",
            allowed_origins=config.allowed_origins,
            api_gateway_name=config.api_gateway_name,
            lambda_function=auth_lambda.lambda_function,
            rest_api_name=config.rest_api_name,
            stage_name=config.stage_name,
        )

        self.api_gateway = api_gateway.api_gateway
        self.lambda_function = auth_lambda.lambda_function
        self.table = dynamo_db.table
        self.user_pool = cognito_user_pool.user_pool

        CfnOutput(
            self,
            "ApiUrl",
            value=api_gateway.api_gateway.url,
        )
        CfnOutput(
            self,
            "UserPoolId",
            value=cognito_user_pool.user_pool.user_pool_id,
        )
        CfnOutput(
            self,
            "UserPoolClientId",
            value=cognito_user_pool.user_pool_client.user_pool_client_id,
        )
        CfnOutput(
            self,
            "TableName",
            value=dynamo_db.table.table_name,
        )
