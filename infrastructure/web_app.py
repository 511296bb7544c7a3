from aws_cdk import (
    CfnOutput,
    RemovalPolicy,
    Stack,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_s3 as s3,
)
from constructs import (
    Construct,
)
from infrastructure.config import (
    WebAppConfig,
)
from typing import (
    Optional,
)


class WebAppStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: Optional[WebAppConfig] = None,
        **kwargs,
    ) -> None:
        if config is not None:
            config.validate()

        super().__init__(scope, construct_id, **kwargs)

        if config is None:
            config = WebAppConfig.from_context(self.node)

        # Static assets of the web app
        self.bucket = s3.Bucket(
            self,
            "WebAppS3",
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            bucket_name=config.bucket_name,
            removal_policy=RemovalPolicy.DESTROY,
        )

        # Content delivery, the bucket is only readable through CloudFront
        self.distribution = cloudfront.Distribution(
            self,
            "ContentDelivery",
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3BucketOrigin.with_origin_access_identity(
                    self.bucket),
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            ),
        )

        CfnOutput(
            self,
            "WebsiteURL",
            value=self.distribution.distribution_domain_name,
        )
