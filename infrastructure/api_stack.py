from aws_cdk import (
    Stack,
    Duration,
    Tags,
    CfnOutput,
    aws_lambda as lambda_,
    aws_apigateway as apigw,
    aws_iam as iam,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

from infrastructure import config


class ApiStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        code_path=None,
        handlers=config.HANDLERS,
        model_id: str = config.DEFAULT_MODEL_ID,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        code_path = str(code_path or config.LAMBDA_CODE_PATH)
        retention = config.log_retention(environment)
        removal_policy = config.log_removal_policy(environment)

        # --- Secrets (created by scripts/deploy.sh) ---
        app_secrets = secretsmanager.Secret.from_secret_name_v2(
            self, "AppSecrets", config.secret_name(environment)
        )

        # --- Shared Lambda execution role ---
        lambda_role = iam.Role(self, "LambdaExecutionRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            description=f"Lambda execution role for {construct_id}",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole"
                )
            ],
            inline_policies={
                "BedrockAccess": iam.PolicyDocument(statements=[
                    iam.PolicyStatement(
                        actions=[
                            "bedrock:InvokeModel",
                            "bedrock:InvokeModelWithResponseStream",
                        ],
                        resources=[
                            "arn:aws:bedrock:*:*:inference-profile/*",
                            "arn:aws:bedrock:*::foundation-model/*",
                        ],
                    )
                ]),
                "SecretsAccess": iam.PolicyDocument(statements=[
                    iam.PolicyStatement(
                        actions=["secretsmanager:GetSecretValue"],
                        # Name-imported secrets carry a random ARN suffix
                        resources=[f"{app_secrets.secret_arn}*"],
                    )
                ]),
            },
        )

        # --- API Gateway ---
        access_logs = logs.LogGroup(self, "ApiLogGroup",
            log_group_name=f"/aws/apigateway/{construct_id}",
            retention=retention,
            removal_policy=removal_policy,
        )

        api = apigw.RestApi(self, "Api",
            rest_api_name=construct_id,
            description=f"API for {construct_id}",
            deploy_options=apigw.StageOptions(
                stage_name="api",
                logging_level=apigw.MethodLoggingLevel.INFO,
                data_trace_enabled=True,
                metrics_enabled=True,
                access_log_destination=apigw.LogGroupLogDestination(access_logs),
                access_log_format=apigw.AccessLogFormat.json_with_standard_fields(
                    caller=True,
                    http_method=True,
                    ip=True,
                    protocol=True,
                    request_time=True,
                    resource_path=True,
                    response_length=True,
                    status=True,
                    user=True,
                ),
            ),
        )

        # --- One function and resource per registered handler ---
        code = lambda_.Code.from_asset(code_path)
        self.functions = {}

        for spec in handlers:
            function_name = f"{construct_id}-{spec.name}"
            construct_name = "".join(part.title() for part in spec.name.split("-"))

            log_group = logs.LogGroup(self, f"{construct_name}LogGroup",
                log_group_name=f"/aws/lambda/{function_name}",
                retention=retention,
                removal_policy=removal_policy,
            )

            fn = lambda_.Function(self, f"{construct_name}Function",
                function_name=function_name,
                runtime=lambda_.Runtime.PYTHON_3_12,
                handler=spec.handler,
                code=code,
                role=lambda_role,
                timeout=Duration.seconds(spec.timeout_seconds),
                memory_size=spec.memory_size,
                log_group=log_group,
                description=f"{spec.description} ({environment})",
                environment={
                    "SECRETS_ARN": app_secrets.secret_arn,
                    "ENVIRONMENT": environment,
                    "MODEL_ID": model_id,
                },
            )
            self.functions[spec.name] = fn

            integration = apigw.LambdaIntegration(fn, proxy=True, allow_test_invoke=True)
            resource = api.root.add_resource(spec.name)
            for method in ("POST", "GET", "OPTIONS"):
                resource.add_method(method, integration,
                    authorization_type=apigw.AuthorizationType.NONE,
                )

            CfnOutput(self, f"{construct_name}FunctionArn",
                value=fn.function_arn,
                description=f"{spec.name} Lambda ARN",
                export_name=f"{construct_id}-{spec.name}-Arn",
            )

        self.api = api
        self.api_url = api.url
        self.api_gateway_domain = f"{api.rest_api_id}.execute-api.{self.region}.amazonaws.com"

        # Outputs
        CfnOutput(self, "ApiUrl",
            value=api.url,
            description="API Gateway URL",
            export_name=f"{construct_id}-ApiUrl",
        )
        CfnOutput(self, "ApiId",
            value=api.rest_api_id,
            description="API Gateway ID",
            export_name=f"{construct_id}-ApiId",
        )
        CfnOutput(self, "SecretsArn",
            value=app_secrets.secret_arn,
            description="Application Secrets ARN",
            export_name=f"{construct_id}-SecretsArn",
        )

        Tags.of(self).add("Stack", "Api")
        Tags.of(self).add("Environment", environment)
