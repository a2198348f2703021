import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Match, Template

from infrastructure.frontend_stack import FrontendStack

API_DOMAIN = "abc123.execute-api.us-east-1.amazonaws.com"


def synth(build_output_path="dist", context=None):
    app = cdk.App(context=context)
    stack = FrontendStack(app, "StoryclunkFrontend-dev",
        environment="dev",
        build_output_path=str(build_output_path),
        api_gateway_domain=API_DOMAIN,
    )
    return Template.from_stack(stack)


@pytest.fixture(scope="module")
def template():
    return synth(context={"withAssets": "false"})


def distribution_config(template):
    distribution = next(iter(template.find_resources("AWS::CloudFront::Distribution").values()))
    return distribution["Properties"]["DistributionConfig"]


def test_private_bucket(template):
    template.has_resource_properties("AWS::S3::Bucket", {
        "PublicAccessBlockConfiguration": {
            "BlockPublicAcls": True,
            "BlockPublicPolicy": True,
            "IgnorePublicAcls": True,
            "RestrictPublicBuckets": True,
        },
        "BucketEncryption": Match.any_value(),
    })


def test_spa_fallback_for_403_and_404(template):
    responses = distribution_config(template)["CustomErrorResponses"]
    assert responses == [
        {"ErrorCode": 403, "ResponseCode": 200, "ResponsePagePath": "/index.html", "ErrorCachingMinTTL": 300},
        {"ErrorCode": 404, "ResponseCode": 200, "ResponsePagePath": "/index.html", "ErrorCachingMinTTL": 300},
    ]


def test_api_paths_proxied_to_api_gateway(template):
    config = distribution_config(template)
    assert config["DefaultRootObject"] == "index.html"

    behaviors = config["CacheBehaviors"]
    assert [b["PathPattern"] for b in behaviors] == ["/api/*"]
    api_behavior = behaviors[0]
    assert "POST" in api_behavior["AllowedMethods"]
    assert api_behavior["ViewerProtocolPolicy"] == "redirect-to-https"

    api_origin = next(o for o in config["Origins"] if o["Id"] == api_behavior["TargetOriginId"])
    assert api_origin["DomainName"] == API_DOMAIN
    assert api_origin["CustomOriginConfig"]["OriginProtocolPolicy"] == "https-only"
    assert {"HeaderName": "X-Origin", "HeaderValue": "CloudFront"} in api_origin["OriginCustomHeaders"]


def test_default_behavior_serves_bucket(template):
    default = distribution_config(template)["DefaultCacheBehavior"]
    assert default["ViewerProtocolPolicy"] == "redirect-to-https"
    assert default["Compress"] is True
    template.resource_count_is("AWS::CloudFront::OriginAccessControl", 1)


def test_without_assets_skips_bucket_deployment(template):
    template.resource_count_is("Custom::CDKBucketDeployment", 0)


def test_with_assets_deploys_and_invalidates(tmp_path):
    (tmp_path / "index.html").write_text("<html></html>")

    template = synth(build_output_path=tmp_path)

    template.has_resource_properties("Custom::CDKBucketDeployment", {
        "DistributionPaths": ["/*"],
        "Prune": True,
    })


def test_outputs(template):
    for name in ("WebsiteURL", "BucketName", "DistributionId"):
        template.has_output(name, {})
    template.has_output("ApiProxyPath", {"Value": "/api/*"})
