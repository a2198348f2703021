from infrastructure import config
from infrastructure.api_stack import ApiStack
from infrastructure.frontend_stack import FrontendStack


def create_environment_stacks(
    app,
    environment,
    *,
    env=None,
    build_output_path=config.DEFAULT_BUILD_PATH,
    code_path=None,
    model_id=config.DEFAULT_MODEL_ID,
):
    """API + frontend stack pair for one named environment.

    The frontend proxies ``/api/*`` to the API stack, so it is deployed second.
    """
    config.validate_environment_name(environment)

    api_stack = ApiStack(app, config.api_stack_name(environment),
        env=env,
        environment=environment,
        code_path=code_path,
        model_id=model_id,
        description=f"API Gateway and Lambda functions - {environment}",
    )

    frontend_stack = FrontendStack(app, config.frontend_stack_name(environment),
        env=env,
        environment=environment,
        build_output_path=build_output_path,
        api_gateway_domain=api_stack.api_gateway_domain,
        description=f"Frontend with Supabase integration - {environment}",
    )
    frontend_stack.add_dependency(api_stack)

    return api_stack, frontend_stack
