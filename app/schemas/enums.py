from enum import Enum

class ConnectionStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"

class ConnectionDecision(str, Enum):
    accepted = "accepted"
    declined = "declined"

class MessageContext(str, Enum):
    direct = "direct"
    meeting = "meeting"

class NotificationType(str, Enum):
    new_connection_request = "new_connection_request"
    connection_accepted = "connection_accepted"
    connection_declined = "connection_declined"
    new_message = "new_message"
