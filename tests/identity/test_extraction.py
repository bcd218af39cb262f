from qr_attendance.identity.extraction import CredentialSource, extract_credential


def test_bearer_header_wins_over_everything():
    found = extract_credential(
        headers={"Authorization": "Bearer aaa", "x-auth-token": "ccc"},
        query={"token": "bbb"},
        cookies={"token": "ddd"},
    )

    assert found.token == "aaa"
    assert found.source == CredentialSource.AUTHORIZATION_HEADER


def test_query_param_before_custom_header_and_cookie():
    found = extract_credential(headers={"X-Auth-Token": "ccc"}, query={"token": "bbb"}, cookies={"token": "ddd"})

    assert (found.token, found.source) == ("bbb", CredentialSource.QUERY_PARAM)


def test_custom_header_is_case_insensitive():
    found = extract_credential(headers={"X-Auth-Token": "ccc"}, cookies={"token": "ddd"})

    assert (found.token, found.source) == ("ccc", CredentialSource.CUSTOM_HEADER)


def test_cookie_is_last_resort():
    found = extract_credential(cookies={"token": "ddd"})

    assert (found.token, found.source) == ("ddd", CredentialSource.COOKIE)


def test_non_bearer_authorization_and_empty_values_are_skipped():
    found = extract_credential(
        headers={"Authorization": "Basic dXNlcjpwdw==", "x-auth-token": "  "},
        query={"token": ""},
        cookies={"token": "ddd"},
    )

    assert found.source == CredentialSource.COOKIE


def test_nothing_found():
    assert extract_credential(headers={"Authorization": "Bearer "}) is None
