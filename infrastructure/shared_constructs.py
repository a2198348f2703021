from aws_cdk import (
    Duration,
    RemovalPolicy,
    Stack,
    aws_iam as iam,
    aws_s3 as s3,
)
from constructs import Construct

ARTIFACTS_BUCKET_PREFIX = "storyclunk-pipeline-artifacts"


class CodeBuildRole(Construct):
    """Service role for a group of CodeBuild projects.

    Each ``allow_*`` flag adds one block of permissions; anything else
    goes through ``additional_policies``.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        allow_secrets_manager: bool = False,
        allow_s3_artifacts: bool = False,
        allow_cloudformation: bool = False,
        allow_cdk_bootstrap: bool = False,
        additional_policies=None,
    ) -> None:
        super().__init__(scope, construct_id)

        statements = []

        if allow_secrets_manager:
            statements.append(iam.PolicyStatement(
                actions=["secretsmanager:GetSecretValue"],
                resources=["*"],
            ))

        if allow_s3_artifacts:
            bucket_name = f"{ARTIFACTS_BUCKET_PREFIX}-{Stack.of(self).account}"
            statements.append(iam.PolicyStatement(
                actions=["s3:GetObject", "s3:PutObject", "s3:ListBucket"],
                resources=[
                    f"arn:aws:s3:::{bucket_name}/*",
                    f"arn:aws:s3:::{bucket_name}",
                ],
            ))

        if allow_cloudformation:
            statements.append(iam.PolicyStatement(
                actions=[
                    "cloudformation:DescribeStacks",
                    "cloudformation:DescribeStackEvents",
                    "cloudformation:DescribeStackResource",
                    "cloudformation:DescribeStackResources",
                    "cloudformation:GetTemplate",
                    "cloudformation:CreateStack",
                    "cloudformation:UpdateStack",
                    "cloudformation:DeleteStack",
                    "cloudformation:CreateChangeSet",
                    "cloudformation:DescribeChangeSet",
                    "cloudformation:ExecuteChangeSet",
                ],
                resources=["*"],
            ))

        if allow_cdk_bootstrap:
            statements.append(iam.PolicyStatement(
                actions=[
                    "cloudformation:*",
                    "ssm:GetParameter",
                    "ssm:PutParameter",
                    "ssm:DeleteParameter",
                    "s3:GetObject",
                    "s3:PutObject",
                    "s3:ListBucket",
                    "iam:CreateRole",
                    "iam:DeleteRole",
                    "iam:GetRole",
                    "iam:PassRole",
                    "iam:AttachRolePolicy",
                    "iam:DetachRolePolicy",
                    "iam:PutRolePolicy",
                    "iam:DeleteRolePolicy",
                    "iam:GetRolePolicy",
                    "iam:TagRole",
                    # cdk deploy runs as the bootstrap deploy/lookup roles
                    "sts:AssumeRole",
                ],
                resources=["*"],
            ))

        statements.extend(additional_policies or [])

        self.role = iam.Role(self, "Role",
            assumed_by=iam.ServicePrincipal("codebuild.amazonaws.com"),
            description=f"CodeBuild role for {construct_id}",
            inline_policies={
                "CodeBuildPolicy": iam.PolicyDocument(statements=statements),
            },
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("CloudWatchLogsFullAccess"),
            ],
        )


class ArtifactsBucket(Construct):
    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)

        account = Stack.of(self).account

        self.bucket = s3.Bucket(self, "Bucket",
            bucket_name=f"{ARTIFACTS_BUCKET_PREFIX}-{account}",
            encryption=s3.BucketEncryption.S3_MANAGED,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            versioned=True,
            lifecycle_rules=[
                s3.LifecycleRule(noncurrent_version_expiration=Duration.days(30)),
                s3.LifecycleRule(abort_incomplete_multipart_upload_after=Duration.days(7)),
            ],
            removal_policy=RemovalPolicy.RETAIN,
        )
