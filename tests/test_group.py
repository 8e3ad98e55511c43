import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import ValidationError
from app.modules.connections import group, resolver


def test_mixed_group(db, users, connect):
    conn = connect(users["alice"], users["bob"])

    result = group.check_group(db, users["alice"], [users["bob"], users["carol"]])

    assert result["all_connected"] is False
    assert result["can_send_group_meeting"] is False
    assert result["connected_count"] == 1
    assert result["unconnected_count"] == 1
    assert result["total_recipients"] == 2

    bob, carol = result["connection_checks"]
    assert bob == {"user_id": users["bob"], "connected": True, "connection_id": conn.id}
    assert "user_details" not in bob
    assert carol["connected"] is False
    assert carol["user_details"] == {"id": users["carol"], "full_name": "Carol Diaz", "organization": "Initech"}


def test_all_connected(db, users, connect):
    connect(users["alice"], users["bob"])
    connect(users["carol"], users["alice"])

    result = group.check_group(db, users["alice"], [users["carol"], users["bob"]])

    assert result["all_connected"] is True
    assert [c["user_id"] for c in result["connection_checks"]] == [users["carol"], users["bob"]]


def test_requester_removed_and_duplicates_kept(db, users, connect):
    connect(users["alice"], users["bob"])

    result = group.check_group(db, users["alice"], [users["bob"], users["alice"], users["bob"]])

    assert result["total_recipients"] == 2
    assert [c["user_id"] for c in result["connection_checks"]] == [users["bob"], users["bob"]]


def test_unknown_recipient_has_no_details(db, users):
    result = group.check_group(db, users["alice"], ["u-ghost"])
    assert result["connection_checks"][0]["user_details"] is None


@pytest.mark.parametrize(
    "requester,recipients,message",
    [
        ("u-alice", ["u-alice"], "Cannot send meeting request to yourself"),
        ("u-alice", [], "At least one recipient is required"),
        ("u-alice", None, "recipient IDs array are required"),
        ("u-alice", "u-bob", "recipient IDs array are required"),
        (None, ["u-bob"], "recipient IDs array are required"),
    ],
)
def test_validation_never_touches_storage(requester, recipients, message):
    with pytest.raises(ValidationError, match=message):
        group.check_group(None, requester, recipients)


def test_one_failing_check_does_not_abort_batch(db, users, connect, monkeypatch):
    connect(users["alice"], users["carol"])
    real_find = resolver.find

    def flaky(session, a, b):
        if users["bob"] in (a, b):
            raise SQLAlchemyError("connection reset")
        return real_find(session, a, b)

    monkeypatch.setattr(resolver, "find", flaky)

    result = group.check_group(db, users["alice"], [users["bob"], users["carol"]])

    bob, carol = result["connection_checks"]
    assert bob["connected"] is False
    assert bob["error"] == "Failed to check connection"
    assert bob["user_details"]["full_name"] == "Bob Ito"
    assert carol["connected"] is True
    assert result["all_connected"] is False
    assert result["connected_count"] == 1


def test_group_endpoint(client, users, connect):
    connect(users["alice"], users["bob"])

    resp = client.post(
        "/api/validate-group-connections",
        json={"requester_id": users["alice"], "recipient_ids": [users["bob"], users["dave"]]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["all_connected"] is False
    assert body["connected_count"] == 1
    assert body["connection_checks"][1]["user_details"]["full_name"] == "Dave Okafor"

    resp = client.post(
        "/api/validate-group-connections",
        json={"requester_id": users["alice"], "recipient_ids": [users["alice"]]},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot send meeting request to yourself"}


@pytest.mark.parametrize("bad_entry", [{"id": "x"}, ["u-bob"], 42, ""])
def test_malformed_recipient_entry_is_400(client, users, bad_entry):
    resp = client.post(
        "/api/validate-group-connections",
        json={"requester_id": users["alice"], "recipient_ids": [users["bob"], bad_entry]},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Requester ID and recipient IDs array are required"}
