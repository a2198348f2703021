from aws_cdk import (
    Stack,
    Duration,
    CfnOutput,
    aws_codebuild as codebuild,
    aws_codepipeline as codepipeline,
    aws_codepipeline_actions as actions,
    aws_cloudwatch as cloudwatch,
    aws_cloudwatch_actions as cloudwatch_actions,
    aws_iam as iam,
    aws_sns as sns,
)
from constructs import Construct

from infrastructure import config
from infrastructure.shared_constructs import ArtifactsBucket, CodeBuildRole

BUILD_IMAGE = codebuild.LinuxBuildImage.STANDARD_7_0


def _env_vars(**values):
    return {k: codebuild.BuildEnvironmentVariable(value=v) for k, v in values.items()}


class PipelineStack(Stack):
    """Source -> UpdatePipeline -> Quality -> Build -> DeployDev -> ManualApproval -> DeployProd.

    Every build step is a CodeBuild project that runs ``buildspecs/<name>.yml``
    from the source checkout. A failed stage stops the execution; nothing is
    retried or rolled back automatically.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        code_connection_arn: str,
        repository_name: str = config.DEFAULT_REPOSITORY,
        branch_name: str = config.DEFAULT_BRANCH,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.code_connection_arn = code_connection_arn
        self.repository_name = repository_name
        self.branch_name = branch_name

        self.artifacts_bucket = ArtifactsBucket(self, "ArtifactsBucket").bucket

        notification_topic = sns.Topic(self, "PipelineNotifications",
            display_name="Pipeline Notifications",
        )

        # --- CodeBuild roles ---
        quality_role = CodeBuildRole(self, "QualityRole",
            allow_secrets_manager=True,
            allow_s3_artifacts=True,
        )

        build_role = CodeBuildRole(self, "BuildRole",
            allow_secrets_manager=True,
            allow_s3_artifacts=True,
            allow_cloudformation=True,
            allow_cdk_bootstrap=True,
            additional_policies=[
                iam.PolicyStatement(
                    actions=[
                        "lambda:GetFunction",
                        "lambda:GetFunctionConfiguration",
                        "lambda:GetAlias",
                        "lambda:ListAliases",
                    ],
                    resources=["arn:aws:lambda:*:*:function:*"],
                ),
                iam.PolicyStatement(
                    actions=[
                        "cloudfront:GetDistribution",
                        "cloudfront:GetDistributionConfig",
                    ],
                    resources=["*"],
                ),
            ],
        )

        deploy_role = CodeBuildRole(self, "DeployRole",
            allow_secrets_manager=True,
            allow_s3_artifacts=True,
            allow_cloudformation=True,
            allow_cdk_bootstrap=True,
            additional_policies=[
                iam.PolicyStatement(
                    actions=[
                        "s3:ListBucket",
                        "s3:GetBucketLocation",
                        "s3:GetObject",
                        "s3:PutObject",
                        "s3:DeleteObject",
                    ],
                    resources=[
                        "arn:aws:s3:::storyclunkfrontend-*",
                        "arn:aws:s3:::storyclunkfrontend-*/*",
                    ],
                ),
                iam.PolicyStatement(
                    actions=[
                        "cloudfront:CreateInvalidation",
                        "cloudfront:GetInvalidation",
                        "cloudfront:ListInvalidations",
                    ],
                    resources=["*"],
                ),
                iam.PolicyStatement(
                    actions=[
                        "lambda:UpdateFunctionCode",
                        "lambda:GetFunction",
                        "lambda:GetAlias",
                        "lambda:UpdateAlias",
                    ],
                    resources=["arn:aws:lambda:*:*:function:*"],
                ),
            ],
        )

        # --- CodeBuild projects ---
        update_pipeline = self._project("UpdatePipeline", "update_pipeline", deploy_role.role,
            environment_variables=_env_vars(
                REPOSITORY_NAME=repository_name,
                BRANCH_NAME=branch_name,
                CODE_CONNECTION_ARN=code_connection_arn,
            ),
        )
        lint_type_secrets = self._project("LintTypeSecrets", "lint_type_secrets", quality_role.role)
        unit_tests = self._project("UnitTests", "unit_tests", quality_role.role)
        dep_scan = self._project("DepScan", "dep_scan", quality_role.role)
        frontend_build = self._project("FrontendBuild", "frontend_build", build_role.role,
            compute_type=codebuild.ComputeType.MEDIUM,
        )
        backend_build = self._project("BackendBuild", "backend_build", build_role.role)
        iac_synth = self._project("IacSynth", "iac_synth_diff_checkov", build_role.role)
        deploy_frontend = self._project("DeployFrontend", "deploy_frontend", deploy_role.role)
        deploy_backend = self._project("DeployBackend", "deploy_backend", deploy_role.role)
        health_check = self._project("HealthCheck", "health_check", quality_role.role)

        # --- Artifacts ---
        source_output = codepipeline.Artifact("SourceOutput")
        lint_output = codepipeline.Artifact("LintTypeSecretsOutput")
        unit_output = codepipeline.Artifact("UnitTestsOutput")
        dep_scan_output = codepipeline.Artifact("DepScanOutput")
        frontend_build_output = codepipeline.Artifact("FrontendBuildOutput")
        backend_build_output = codepipeline.Artifact("BackendBuildOutput")
        iac_synth_output = codepipeline.Artifact("IacSynthOutput")
        frontend_deploy_dev = codepipeline.Artifact("FrontendDeployDev")
        frontend_deploy_prod = codepipeline.Artifact("FrontendDeployProd")

        owner, repo = repository_name.split("/", 1)

        def deploy_stage(environment, frontend_output, health_check_step=False):
            stage_actions = [
                actions.CodeBuildAction(
                    action_name=f"DeployBackend{environment.title()}",
                    project=deploy_backend,
                    input=source_output,
                    extra_inputs=[backend_build_output, iac_synth_output],
                    environment_variables=_env_vars(
                        ENVIRONMENT=environment,
                        LAMBDA_FUNCTION_PREFIX=config.api_stack_name(environment),
                    ),
                    run_order=1,
                ),
                actions.CodeBuildAction(
                    action_name=f"DeployFrontend{environment.title()}",
                    project=deploy_frontend,
                    input=source_output,
                    extra_inputs=[frontend_build_output],
                    outputs=[frontend_output],
                    environment_variables=_env_vars(ENVIRONMENT=environment),
                    run_order=2,
                ),
            ]
            if health_check_step:
                stage_actions.append(actions.CodeBuildAction(
                    action_name=f"HealthCheck{environment.title()}",
                    project=health_check,
                    input=source_output,
                    extra_inputs=[frontend_output],
                    environment_variables=_env_vars(ENVIRONMENT=environment),
                    run_order=3,
                ))
            return stage_actions

        stages = [
            codepipeline.StageProps(stage_name="Source", actions=[
                actions.CodeStarConnectionsSourceAction(
                    action_name="Source",
                    owner=owner,
                    repo=repo,
                    branch=branch_name,
                    connection_arn=code_connection_arn,
                    output=source_output,
                    trigger_on_push=True,
                ),
            ]),
            codepipeline.StageProps(stage_name="UpdatePipeline", actions=[
                actions.CodeBuildAction(
                    action_name="UpdatePipeline",
                    project=update_pipeline,
                    input=source_output,
                ),
            ]),
            codepipeline.StageProps(stage_name="Quality", actions=[
                actions.CodeBuildAction(
                    action_name="LintTypeSecrets",
                    project=lint_type_secrets,
                    input=source_output,
                    outputs=[lint_output],
                ),
                actions.CodeBuildAction(
                    action_name="UnitTests",
                    project=unit_tests,
                    input=source_output,
                    outputs=[unit_output],
                ),
                actions.CodeBuildAction(
                    action_name="DepScan",
                    project=dep_scan,
                    input=source_output,
                    outputs=[dep_scan_output],
                ),
            ]),
            codepipeline.StageProps(stage_name="Build", actions=[
                actions.CodeBuildAction(
                    action_name="FrontendBuild",
                    project=frontend_build,
                    input=source_output,
                    outputs=[frontend_build_output],
                ),
                actions.CodeBuildAction(
                    action_name="BackendBuild",
                    project=backend_build,
                    input=source_output,
                    outputs=[backend_build_output],
                ),
                actions.CodeBuildAction(
                    action_name="IacSynth",
                    project=iac_synth,
                    input=source_output,
                    outputs=[iac_synth_output],
                ),
            ]),
            codepipeline.StageProps(stage_name="DeployDev",
                actions=deploy_stage("dev", frontend_deploy_dev),
            ),
            codepipeline.StageProps(stage_name="ManualApproval", actions=[
                actions.ManualApprovalAction(
                    action_name="ApproveProductionDeployment",
                    additional_information="Review dev deployment and approve production deployment",
                ),
            ]),
            codepipeline.StageProps(stage_name="DeployProd",
                actions=deploy_stage("prod", frontend_deploy_prod, health_check_step=True),
            ),
        ]

        self.pipeline = codepipeline.Pipeline(self, "Pipeline",
            pipeline_name=config.PIPELINE_NAME,
            pipeline_type=codepipeline.PipelineType.V2,
            artifact_bucket=self.artifacts_bucket,
            stages=stages,
        )

        # --- Monitoring ---
        failures_alarm = cloudwatch.Alarm(self, "PipelineFailures",
            metric=cloudwatch.Metric(
                namespace="AWS/CodePipeline",
                metric_name="FailedExecutions",
                dimensions_map={"PipelineName": self.pipeline.pipeline_name},
                statistic="Sum",
                period=Duration.hours(1),
            ),
            threshold=1,
            evaluation_periods=1,
            alarm_description="Alert when pipeline execution fails",
        )
        failures_alarm.add_alarm_action(cloudwatch_actions.SnsAction(notification_topic))

        self.pipeline.notify_on_execution_state_change(
            "PipelineExecutionNotifications", notification_topic
        )

        # Outputs
        CfnOutput(self, "PipelineName",
            value=self.pipeline.pipeline_name,
            description="CodePipeline Name",
        )
        CfnOutput(self, "BuildRoleArn",
            value=build_role.role.role_arn,
            description="CodeBuild Build Role ARN (for CDK bootstrap trust)",
            export_name=f"{self.stack_name}-BuildRoleArn",
        )
        CfnOutput(self, "DeployRoleArn",
            value=deploy_role.role.role_arn,
            description="CodeBuild Deploy Role ARN (for CDK bootstrap trust)",
            export_name=f"{self.stack_name}-DeployRoleArn",
        )

    def _project(self, name, buildspec, role, compute_type=codebuild.ComputeType.SMALL,
                 environment_variables=None):
        return codebuild.PipelineProject(self, f"{name}Project",
            project_name=f"{config.PROJECT_NAME}-{name}",
            role=role,
            environment=codebuild.BuildEnvironment(
                build_image=BUILD_IMAGE,
                compute_type=compute_type,
            ),
            build_spec=codebuild.BuildSpec.from_source_filename(f"buildspecs/{buildspec}.yml"),
            environment_variables=environment_variables,
        )
