import pytest

from vipps_payments import ApiError, MockSession, VippsClient


def test_create_and_fetch_redirect_qr(client: VippsClient, session: MockSession) -> None:
    created = client.create_redirect_qr("table-7", "https://cafe.example/menu")

    assert created.id == "table-7"
    assert created.redirect_url == "https://cafe.example/menu"
    assert created.url.endswith("/table-7")
    assert session.calls[-1].headers["Accept"] == "image/svg+xml"
    assert session.calls[-1].body == {"id": "table-7", "redirectUrl": "https://cafe.example/menu"}

    fetched = client.get_redirect_qr("table-7")
    assert fetched is not None
    assert fetched.data == created.data


def test_missing_redirect_qr_is_none(client: VippsClient) -> None:
    assert client.get_redirect_qr("nope") is None


def test_lookup_still_raises_for_other_failures(client: VippsClient, session: MockSession) -> None:
    client.access_token()
    session.inject_response(500, b"upstream exploded")

    with pytest.raises(ApiError) as excinfo:
        client.get_redirect_qr("table-7")

    assert excinfo.value.code == 500
    assert excinfo.value.title == "Unknown error"


def test_list_redirect_qrs(client: VippsClient) -> None:
    client.create_redirect_qr("a", "https://example.com/a")
    client.create_redirect_qr("b", "https://example.com/b", image_format="image/png")

    listed = client.list_redirect_qrs()

    assert sorted(qr.id for qr in listed) == ["a", "b"]


def test_update_redirect_url(client: VippsClient, session: MockSession) -> None:
    qr = client.create_redirect_qr("poster", "https://example.com/old")

    qr.update_redirect_url("https://example.com/new")

    assert qr.redirect_url == "https://example.com/new"
    call = session.calls[-1]
    assert call.method == "PUT"
    assert call.body == {"redirectUrl": "https://example.com/new"}
    assert client.get_redirect_qr("poster").redirect_url == "https://example.com/new"


def test_delete_redirect_qr(client: VippsClient) -> None:
    qr = client.create_redirect_qr("flyer", "https://example.com/flyer")

    qr.delete()

    assert client.get_redirect_qr("flyer") is None
    with pytest.raises(ApiError) as excinfo:
        qr.delete()
    assert excinfo.value.code == 404


def test_duplicate_id_is_a_conflict(client: VippsClient) -> None:
    client.create_redirect_qr("dup", "https://example.com")

    with pytest.raises(ApiError) as excinfo:
        client.create_redirect_qr("dup", "https://example.com")

    assert excinfo.value.code == 409
