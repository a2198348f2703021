from unittest.mock import Mock

import requests

import health_check

API_URL = "https://abc.execute-api.us-east-1.amazonaws.com/api/"
WEBSITE_URL = "https://d111.cloudfront.net"


def cloudformation():
    outputs = {
        "StoryclunkApi-prod": [{"OutputKey": "ApiUrl", "OutputValue": API_URL}],
        "StoryclunkFrontend-prod": [{"OutputKey": "WebsiteURL", "OutputValue": WEBSITE_URL}],
    }
    cfn = Mock()
    cfn.describe_stacks.side_effect = lambda StackName: {"Stacks": [{"Outputs": outputs[StackName]}]}
    return cfn


def session_answering(statuses):
    session = Mock()

    def request(method, url, json=None, timeout=None):
        return Mock(status_code=statuses.get((method, url), 200 if method == "GET" else 400))

    session.request.side_effect = request
    return session


def test_all_checks_pass():
    session = session_answering({})

    failures = health_check.run("prod", cfn=cloudformation(), session=session)

    assert failures == []
    urls = [c.args[1] for c in session.request.call_args_list]
    assert urls == [
        f"{WEBSITE_URL}/",
        "https://abc.execute-api.us-east-1.amazonaws.com/api/continue-story",
        f"{WEBSITE_URL}/api/continue-story",
        "https://abc.execute-api.us-east-1.amazonaws.com/api/suggest-improvements",
        f"{WEBSITE_URL}/api/suggest-improvements",
    ]


def test_unexpected_status_is_reported():
    session = session_answering({("POST", f"{WEBSITE_URL}/api/continue-story"): 502})

    failures = health_check.run("prod", cfn=cloudformation(), session=session)

    assert failures == [f"POST {WEBSITE_URL}/api/continue-story: HTTP 502, expected 400"]


def test_connection_errors_are_reported():
    session = Mock()
    session.request.side_effect = requests.ConnectionError("refused")

    error = health_check.check(session, "GET", WEBSITE_URL)

    assert error == f"GET {WEBSITE_URL}: refused"


def test_main_exit_code(monkeypatch):
    monkeypatch.setattr(health_check, "run", lambda environment: ["broken"])
    assert health_check.main(["prod"]) == 1

    monkeypatch.setattr(health_check, "run", lambda environment: [])
    assert health_check.main(["prod"]) == 0
