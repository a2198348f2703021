from aws_cdk import (
    Stack,
    Duration,
    Tags,
    CfnOutput,
    RemovalPolicy,
    aws_s3 as s3,
    aws_s3_deployment as s3deploy,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
)
from constructs import Construct

API_PROXY_PATH = "/api/*"
SPA_ENTRY = "/index.html"


class FrontendStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        build_output_path: str,
        api_gateway_domain: str,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # --- Private bucket for the built web bundle ---
        website_bucket = s3.Bucket(self, "WebsiteBucket",
            bucket_name=f"{construct_id.lower()}-{self.account}",
            public_read_access=False,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
        )

        api_origin = origins.HttpOrigin(api_gateway_domain,
            protocol_policy=cloudfront.OriginProtocolPolicy.HTTPS_ONLY,
            custom_headers={"X-Origin": "CloudFront"},
        )

        # SPA fallback: unknown paths render the app entry document
        spa_fallbacks = [
            cloudfront.ErrorResponse(
                http_status=status,
                response_http_status=200,
                response_page_path=SPA_ENTRY,
                ttl=Duration.minutes(5),
            )
            for status in (403, 404)
        ]

        # --- CloudFront: static site + /api/* proxy ---
        distribution = cloudfront.Distribution(self, "Distribution",
            comment=construct_id,
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3BucketOrigin.with_origin_access_control(website_bucket),
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD_OPTIONS,
                cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD_OPTIONS,
                cache_policy=cloudfront.CachePolicy.CACHING_OPTIMIZED,
                compress=True,
            ),
            additional_behaviors={
                API_PROXY_PATH: cloudfront.BehaviorOptions(
                    origin=api_origin,
                    viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                    allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
                    cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD_OPTIONS,
                    cache_policy=cloudfront.CachePolicy.CACHING_DISABLED,
                    origin_request_policy=cloudfront.OriginRequestPolicy.ALL_VIEWER_EXCEPT_HOST_HEADER,
                ),
            },
            default_root_object="index.html",
            error_responses=spa_fallbacks,
            price_class=cloudfront.PriceClass.PRICE_CLASS_100,
            enable_ipv6=True,
            http_version=cloudfront.HttpVersion.HTTP2_AND_3,
            minimum_protocol_version=cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
        )

        # --- Website assets ---
        with_assets = self.node.try_get_context("withAssets") != "false"
        if with_assets:
            s3deploy.BucketDeployment(self, "DeployWebsite",
                sources=[s3deploy.Source.asset(build_output_path)],
                destination_bucket=website_bucket,
                distribution=distribution,
                distribution_paths=["/*"],
                prune=True,
                memory_limit=512,
            )

        self.bucket = website_bucket
        self.distribution = distribution
        self.distribution_domain_name = distribution.distribution_domain_name

        # Outputs
        CfnOutput(self, "WebsiteURL",
            value=f"https://{distribution.distribution_domain_name}",
            description="Website URL",
            export_name=f"{construct_id}-WebsiteURL",
        )
        CfnOutput(self, "BucketName",
            value=website_bucket.bucket_name,
            description="S3 bucket name",
            export_name=f"{construct_id}-BucketName",
        )
        CfnOutput(self, "DistributionId",
            value=distribution.distribution_id,
            description="CloudFront distribution ID",
            export_name=f"{construct_id}-DistributionId",
        )
        CfnOutput(self, "ApiProxyPath",
            value=API_PROXY_PATH,
            description="API proxy path through CloudFront",
        )

        Tags.of(self).add("Stack", "Frontend")
        Tags.of(self).add("Environment", environment)
