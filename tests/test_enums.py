import pytest

from coolwebsocket.shared.enums import CloseStatus, MessageType, WebSocketError, WebSocketState


@pytest.mark.parametrize("member, code", [
    (CloseStatus.NORMAL_CLOSURE, 1000),
    (CloseStatus.ENDPOINT_UNAVAILABLE, 1001),
    (CloseStatus.PROTOCOL_ERROR, 1002),
    (CloseStatus.INVALID_MESSAGE_TYPE, 1003),
    (CloseStatus.EMPTY, 1005),
    (CloseStatus.INVALID_PAYLOAD_DATA, 1007),
    (CloseStatus.POLICY_VIOLATION, 1008),
    (CloseStatus.MESSAGE_TOO_BIG, 1009),
    (CloseStatus.MANDATORY_EXTENSION, 1010),
    (CloseStatus.INTERNAL_SERVER_ERROR, 1011),
])
def test_close_status_wire_codes(member, code):
    assert member == code


def test_error_codes_are_numbered_in_order():
    assert [int(e) for e in WebSocketError] == list(range(10))
    assert WebSocketError.INVALID_STATE == 9


def test_from_code_keeps_unknown_codes_as_ints():
    assert CloseStatus.from_code(1000) is CloseStatus.NORMAL_CLOSURE
    assert CloseStatus.from_code(4001) == 4001
    assert not isinstance(CloseStatus.from_code(4001), CloseStatus)


def test_message_and_state_vocabularies():
    assert [m.value for m in MessageType] == ["text", "binary", "close"]
    assert WebSocketState.OPEN == 2
    assert WebSocketState.ABORTED == 6
