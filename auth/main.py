from aws_lambda_powertools import (
    Logger,
)
from boto3 import (
    client,
)
from boto3.dynamodb.types import (
    TypeSerializer,
)
from decimal import (
    Decimal,
    DecimalException,
)
from json import (
    dumps,
    loads,
)
from os import (
    getenv,
)
from time import (
    time,
)
from typing import (
    Optional,
)

ALLOWED_ORIGINS = getenv("ALLOWED_ORIGINS", "*").split(",")
TABLE_NAME = getenv("DYNAMODB_TABLE")
cognito = client("cognito-idp")
dynamodb = client("dynamodb")
logger = Logger(
    level=getenv("LOG_LEVEL", "DEBUG"),
    service="auth_engine",
)


def get_header(event: dict, name: str) -> Optional[str]:
    # API Gateway keeps the header case used by the client
    headers = event.get("headers") or {}

    for key, value in headers.items():
        if key.lower() == name.lower():
            return value

    return None


def get_origin(event: dict) -> Optional[str]:
    if "*" in ALLOWED_ORIGINS:
        return "*"

    origin = get_header(event, "Origin")

    if origin in ALLOWED_ORIGINS:
        return origin

    return None


def get_token(authorization: str) -> str:
    authorization = authorization.strip()
    scheme, _, token = authorization.partition(" ")

    if scheme.lower() == "bearer":
        return token.strip()

    return authorization


def reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not a valid JSON number")


def python_obj_to_dynamo_obj(python_obj: dict) -> dict:
    serializer = TypeSerializer()

    return {
        k: serializer.serialize(v)
        for k, v in python_obj.items()
    }


def response(status_code: int, body: dict, origin: Optional[str]) -> dict:
    headers = {
        "Content-Type": "application/json",
    }

    if origin is not None:
        headers["Access-Control-Allow-Origin"] = origin

    # Browsers refuse credentials together with the wildcard origin
    if origin is not None and origin != "*":
        headers["Access-Control-Allow-Credentials"] = "true"
        headers["Vary"] = "Origin"

    return {
        "body": dumps(body),
        "headers": headers,
        "statusCode": status_code,
    }


def get_username(token: str) -> Optional[str]:
    try:
        user = cognito.get_user(AccessToken=token)
    except (
        cognito.exceptions.NotAuthorizedException,
        cognito.exceptions.UserNotFoundException,
    ) as exception:
        logger.warning(f"Rejected access token: {exception}")

        return None

    return user["Username"]


def build_item(id: str, username: str, request: dict) -> dict:
    return {
        "ID": {
            "S": id,
        },
        "created_at": {
            "N": str(int(time())),
        },
        "request": {
            "M": python_obj_to_dynamo_obj(request),
        },
        "username": {
            "S": username,
        },
    }


def save_request(item: dict) -> None:
    logger.debug(f"Saving request {item['ID']['S']}")

    dynamodb.put_item(
        Item=item,
        TableName=TABLE_NAME,
    )


def handler(event: dict, context) -> dict:
    """
    The input event is an API Gateway proxy request:

    {
        "body": "{\"repository\": \"octocat/hello-world\"}",
        "headers": {
            "Authorization": "Bearer eyJraWQiOiJ...",
            "Content-Type": "application/json",
            "Origin": "https://example.com"
        },
        "httpMethod": "POST",
        "path": "/",
        "queryStringParameters": {
            "myParam": "value"
        }
    }

    The caller is resolved from the Cognito access token and the JSON body
    is stored under the Lambda request id.
    """
    logger.debug(context)
    logger.debug(event)

    origin = get_origin(event)
    authorization = get_header(event, "Authorization")

    if not authorization:
        return response(
            401, {"message": "Missing Authorization header"}, origin)

    token = get_token(authorization)

    if not token:
        return response(401, {"message": "Missing access token"}, origin)

    username = get_username(token)

    if username is None:
        return response(401, {"message": "Invalid access token"}, origin)

    try:
        request = loads(
            event.get("body") or "{}",
            parse_constant=reject_constant,
            parse_float=Decimal,
        )
    except ValueError:
        return response(
            400, {"message": "Request body is not valid JSON"}, origin)

    if not isinstance(request, dict):
        return response(
            400, {"message": "Request body must be an object"}, origin)

    id = context.aws_request_id

    try:
        item = build_item(id, username, request)
    except (TypeError, DecimalException) as exception:
        logger.warning(f"Request {id} cannot be stored: {exception!r}")

        return response(
            400, {"message": "Request body cannot be stored"}, origin)

    save_request(item)

    logger.info(f"Stored request {id} for {username}")

    return response(200, {"id": id, "username": username}, origin)
