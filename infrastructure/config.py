from aws_cdk import (
    aws_dynamodb as dynamodb,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import (
    Node,
)
from dataclasses import (
    dataclass,
    field,
    fields,
)
from json import (
    loads,
)
from os import (
    path,
)
from typing import (
    List,
    Optional,
)

AUTH_CODE_PATH = path.join(
    path.dirname(path.dirname(path.abspath(__file__))),
    "auth",
)


def _from_context(cls, node: Node, key: str):
    values = node.try_get_context(key) or {}

    # cdk synth -c passes every value as a string
    if isinstance(values, str):
        try:
            values = loads(values)
        except ValueError as exception:
            raise ValueError(
                f"Context value {key} is not valid JSON: {exception}")

    if not isinstance(values, dict):
        raise ValueError(f"Context value {key} must be an object")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)

    if unknown:
        raise ValueError(f"Unknown {key} settings: {', '.join(unknown)}")

    config = cls(**values)
    config.validate()

    return config


def _require(**values) -> None:
    for name, value in values.items():
        if not value:
            raise ValueError(f"{name} must not be empty")


@dataclass(frozen=True)
class WebAppConfig:
    # None lets CloudFormation generate a unique name
    bucket_name: Optional[str] = "my-webapp-bucket"

    @classmethod
    def from_context(cls, node: Node) -> "WebAppConfig":
        return _from_context(cls, node, "web_app")

    def validate(self) -> None:
        if self.bucket_name is not None:
            _require(bucket_name=self.bucket_name)


@dataclass(frozen=True)
class AuthEngineConfig:
    """
    Settings of the auth engine stack, read from the "auth_engine" context
    object. Defaults are the values the stack was first deployed with.
    """
    max_azs: int = 3
    nat_gateways: int = 1

    table_name: str = "MyTable"
    partition_key_name: str = "ID"
    partition_key_type: str = "STRING"

    user_pool_name: str = "MyUserPool"
    user_pool_client_name: str = "MyUserPoolClient"

    cache_cluster_id: str = "MyCacheCluster"
    cache_node_type: str = "cache.t2.micro"
    cache_engine: str = "redis"
    num_cache_nodes: int = 1

    log_group_name: str = "MyLogGroup"
    log_retention: str = "ONE_MONTH"

    function_name: str = "AuthLambdaFunction"
    handler: str = "main.handler"
    code_path: str = AUTH_CODE_PATH
    runtime: str = "PYTHON_3_12"
    log_level: str = "INFO"
    powertools_layer_version: int = 7

    rest_api_name: str = "MyApiGateway"
    api_gateway_name: str = "MyApiGatewayName"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    stage_name: str = "prod"

    @classmethod
    def from_context(cls, node: Node) -> "AuthEngineConfig":
        return _from_context(cls, node, "auth_engine")

    @property
    def attribute_type(self) -> dynamodb.AttributeType:
        return getattr(dynamodb.AttributeType, self.partition_key_type)

    @property
    def retention_days(self) -> logs.RetentionDays:
        return getattr(logs.RetentionDays, self.log_retention)

    @property
    def lambda_runtime(self) -> lambda_.Runtime:
        return getattr(lambda_.Runtime, self.runtime)

    def validate(self) -> None:
        _require(
            table_name=self.table_name,
            partition_key_name=self.partition_key_name,
            user_pool_name=self.user_pool_name,
            user_pool_client_name=self.user_pool_client_name,
            cache_cluster_id=self.cache_cluster_id,
            cache_node_type=self.cache_node_type,
            cache_engine=self.cache_engine,
            log_group_name=self.log_group_name,
            function_name=self.function_name,
            handler=self.handler,
            rest_api_name=self.rest_api_name,
            api_gateway_name=self.api_gateway_name,
            stage_name=self.stage_name,
        )

        if self.max_azs < 1:
            raise ValueError(f"max_azs must be positive, got {self.max_azs}")

        if self.nat_gateways < 0:
            raise ValueError(
                f"nat_gateways must not be negative, got {self.nat_gateways}")

        if self.powertools_layer_version < 1:
            raise ValueError(
                "powertools_layer_version must be positive, "
                f"got {self.powertools_layer_version}")

        if self.num_cache_nodes < 1:
            raise ValueError(
                f"num_cache_nodes must be positive, got {self.num_cache_nodes}")

        if self.partition_key_type not in ("STRING", "NUMBER", "BINARY"):
            raise ValueError(
                f"Unknown partition key type {self.partition_key_type}")

        if not hasattr(logs.RetentionDays, self.log_retention):
            raise ValueError(f"Unknown log retention {self.log_retention}")

        if not hasattr(lambda_.Runtime, self.runtime):
            raise ValueError(f"Unknown Lambda runtime {self.runtime}")

        if not self.allowed_origins:
            raise ValueError("allowed_origins must contain at least one origin")

        # API Gateway only accepts the wildcard on its own
        if "*" in self.allowed_origins and len(self.allowed_origins) > 1:
            raise ValueError("allowed_origins cannot mix * with other origins")

        # The Lambda receives the origins comma-joined
        if any("," in origin for origin in self.allowed_origins):
            raise ValueError("allowed_origins entries cannot contain commas")

        if not path.isdir(self.code_path):
            raise ValueError(f"Lambda code path {self.code_path} not found")
