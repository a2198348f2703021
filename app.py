#!/usr/bin/env python3
import os
import aws_cdk as cdk
from infrastructure import config
from infrastructure.environment import create_environment_stacks
from infrastructure.pipeline_stack import PipelineStack

app = cdk.App()

env = cdk.Environment(
    account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
    region=os.environ.get("CDK_DEFAULT_REGION", "us-east-1"),
)

code_connection_arn = app.node.try_get_context("codeConnectionArn")
repository_name = app.node.try_get_context("repositoryName") or config.DEFAULT_REPOSITORY
branch_name = app.node.try_get_context("branchName") or config.DEFAULT_BRANCH
pipeline_only = app.node.try_get_context("pipelineOnly") == "true"

# Application mode: one API + frontend pair per environment.
#   preview-<user>  created by scripts/deploy.sh for local testing
#   dev / prod      created by the pipeline's deploy stages
# Pipeline mode (pipelineOnly=true) synthesizes only the pipeline stack.
if not pipeline_only:
    create_environment_stacks(app,
        app.node.try_get_context("environment") or config.default_environment(),
        env=env,
        build_output_path=app.node.try_get_context("buildPath") or config.DEFAULT_BUILD_PATH,
        code_path=app.node.try_get_context("lambdaCodePath"),
        model_id=app.node.try_get_context("modelId") or config.DEFAULT_MODEL_ID,
    )

if code_connection_arn:
    PipelineStack(app, config.PIPELINE_STACK_NAME,
        env=env,
        description="CI/CD Pipeline for Storyclunk",
        code_connection_arn=code_connection_arn,
        repository_name=repository_name,
        branch_name=branch_name,
    )
else:
    print("CodeConnection ARN not provided. Pipeline stack will not be created.")
    print("  Pass it with: cdk deploy --context codeConnectionArn=<arn>")

cdk.Tags.of(app).add("Project", config.PROJECT_NAME)
cdk.Tags.of(app).add("ManagedBy", "CDK")

app.synth()
