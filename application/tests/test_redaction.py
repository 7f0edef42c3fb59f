from support_directory.config.sentry import before_send_filter
from support_directory.middlewares.logging_middleware import mask_fields, mask_headers


def test_audit_masks_credentials_in_headers_and_body():
    headers = mask_headers({"Authorization": "Bearer abc", "x-otp-token": "jwt", "accept": "application/json"})
    assert headers == {"Authorization": "****", "x-otp-token": "****", "accept": "application/json"}

    body = mask_fields({"phone": "+911", "code": "123456", "nested": [{"newPassword": "secret-1"}]})
    assert body == {"phone": "+911", "code": "****", "nested": [{"newPassword": "****"}]}


def test_sentry_events_are_scrubbed():
    event = {
        "request": {
            "headers": {"Authorization": "Bearer abc", "X-OTP-Token": "jwt", "Accept": "*/*"},
            "query_string": "userId=CL1&otpToken=jwt",
            "data": {"password": "p", "phone": "+911"},
        }
    }

    request = before_send_filter(event, None)["request"]

    assert request["headers"] == {"Authorization": "[Filtered]", "X-OTP-Token": "[Filtered]", "Accept": "*/*"}
    assert request["query_string"] == "[Filtered]"
    assert request["data"] == {"password": "[Filtered]", "phone": "+911"}
