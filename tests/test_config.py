import aws_cdk as cdk
import pytest
from aws_cdk import RemovalPolicy, aws_logs as logs

from infrastructure import config
from infrastructure.environment import create_environment_stacks


class TestEnvironmentNames:
    @pytest.mark.parametrize("name", ["dev", "prod", "preview-alice", "preview-j-doe2"])
    def test_valid(self, name):
        assert config.validate_environment_name(name) == name

    @pytest.mark.parametrize("name", ["", "staging", "preview-", "Preview-alice", "preview_bob", "dev "])
    def test_invalid(self, name):
        with pytest.raises(ValueError):
            config.validate_environment_name(name)

    def test_default_uses_sanitised_username(self, monkeypatch):
        monkeypatch.setenv("USER", "Jane.Doe")
        assert config.default_environment() == "preview-jane-doe"

    def test_default_falls_back_to_local(self, monkeypatch):
        monkeypatch.setenv("USER", "...")
        assert config.default_environment() == "preview-local"

    def test_resource_names(self):
        assert config.api_stack_name("dev") == "StoryclunkApi-dev"
        assert config.frontend_stack_name("prod") == "StoryclunkFrontend-prod"
        assert config.secret_name("preview-alice") == "preview-alice/app-secrets"


class TestRetention:
    def test_prod(self):
        assert config.log_retention("prod") == logs.RetentionDays.INFINITE
        assert config.log_removal_policy("prod") == RemovalPolicy.RETAIN

    @pytest.mark.parametrize("name", ["dev", "preview-alice"])
    def test_non_prod(self, name):
        assert config.log_retention(name) == logs.RetentionDays.ONE_WEEK
        assert config.log_removal_policy(name) == RemovalPolicy.DESTROY


class TestHandlerRegistry:
    def test_names_are_unique(self):
        names = [spec.name for spec in config.HANDLERS]
        assert len(names) == len(set(names)) == 2

    def test_handler_modules_exist(self):
        for spec in config.HANDLERS:
            module, _, function = spec.handler.partition(".")
            assert function == "lambda_handler"
            assert (config.LAMBDA_CODE_PATH / f"{module}.py").is_file()


class TestEnvironmentStacks:
    def test_pair_is_named_after_environment_and_ordered(self):
        app = cdk.App(context={"withAssets": "false"})

        api, frontend = create_environment_stacks(app, "preview-alice")

        assert api.stack_name == "StoryclunkApi-preview-alice"
        assert frontend.stack_name == "StoryclunkFrontend-preview-alice"
        assert api in frontend.dependencies

    def test_rejects_bad_environment(self):
        with pytest.raises(ValueError):
            create_environment_stacks(cdk.App(), "qa")

    def test_environments_do_not_share_stacks(self):
        app = cdk.App(context={"withAssets": "false"})

        dev_api, _ = create_environment_stacks(app, "dev")
        prod_api, _ = create_environment_stacks(app, "prod")

        assert dev_api.stack_name != prod_api.stack_name
        assert {s.stack_name for s in app.node.children} == {
            "StoryclunkApi-dev", "StoryclunkFrontend-dev",
            "StoryclunkApi-prod", "StoryclunkFrontend-prod",
        }
