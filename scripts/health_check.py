"""Post-deploy smoke test for one environment.

Reads the stack outputs, loads the website root and posts an empty body to
every registered handler, both directly and through the CloudFront ``/api/*``
proxy. An empty body must be rejected with 400, which proves the function runs
without spending an inference call. Exits non-zero if any check fails.

    python scripts/health_check.py prod
"""
import argparse
import os
import sys

import boto3
import requests

from infrastructure import config

TIMEOUT = 10


def stack_outputs(cfn, stack_name):
    response = cfn.describe_stacks(StackName=stack_name)
    outputs = response["Stacks"][0].get("Outputs", [])
    return {o["OutputKey"]: o["OutputValue"] for o in outputs}


def check(session, method, url, expected_status=200, body=None):
    try:
        response = session.request(method, url, json=body, timeout=TIMEOUT)
    except requests.RequestException as e:
        return f"{method} {url}: {e}"
    if response.status_code != expected_status:
        return f"{method} {url}: HTTP {response.status_code}, expected {expected_status}"
    return None


def run(environment, cfn=None, session=None):
    cfn = cfn or boto3.client("cloudformation")
    session = session or requests.Session()

    api_url = stack_outputs(cfn, config.api_stack_name(environment))["ApiUrl"].rstrip("/")
    website_url = stack_outputs(cfn, config.frontend_stack_name(environment))["WebsiteURL"].rstrip("/")

    targets = [("GET", f"{website_url}/", 200, None)]
    for spec in config.HANDLERS:
        targets.append(("POST", f"{api_url}/{spec.name}", 400, {}))
        targets.append(("POST", f"{website_url}/api/{spec.name}", 400, {}))

    failures = []
    for method, url, expected_status, body in targets:
        error = check(session, method, url, expected_status, body)
        print(f"{'FAIL' if error else 'OK  '} {method} {url}")
        if error:
            failures.append(error)
    return failures


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("environment", nargs="?", default=os.environ.get("ENVIRONMENT"))
    args = parser.parse_args(argv)

    if not args.environment:
        parser.error("environment is required (argument or ENVIRONMENT)")

    failures = run(args.environment)
    if failures:
        print(f"\n{len(failures)} health check(s) failed:")
        for failure in failures:
            print(f"  {failure}")
        return 1

    print("\nAll health checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
