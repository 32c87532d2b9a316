from utils.logger import sanitize_log_data

def test_secret_redaction():
    data = {"order_id": "order123", "webhook_secret": "whsec_supersecret"}
    sanitized = sanitize_log_data(data)

    assert sanitized["order_id"] == "order123"
    assert sanitized["webhook_secret"] == "***REDACTED***"


def test_signature_partial_redaction():
    data = {"signature": "t=1700000000,v1=5257a869e7ecebeda32affa62cdca3fa51cad7e77a0e56ff536d0ce8e108d8bd"}
    sanitized = sanitize_log_data(data)

    assert len(sanitized["signature"]) == 11
    assert sanitized["signature"].startswith(data["signature"][:8])
    assert sanitized["signature"].endswith("...")


def test_authorization_header_redacted():
    data = {"Authorization": "Bearer"}
    sanitized = sanitize_log_data(data)

    assert sanitized["Authorization"] == "***REDACTED***"


def test_nested_dict_sanitization():
    data = {
        "gateway": {
            "currency": "mxn",
            "api_key": "sk_live_123"
        }
    }
    sanitized = sanitize_log_data(data)

    assert sanitized["gateway"]["currency"] == data["gateway"]["currency"]
    assert sanitized["gateway"]["api_key"] == "***REDACTED***"


def test_non_sensitive_data_unchanged():
    data = {"order_id": "order123", "status": "paid", "total_amount": 12000}
    sanitized = sanitize_log_data(data)

    assert sanitized == data
