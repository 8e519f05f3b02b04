"""
Profile and message records stored in the key-value store.

Layout:
    user:<id>                                  -> profile
    message:<conversation_id>:<created_millis> -> message
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from nearby.kv_store import Store

USER_PREFIX = "user:"
MESSAGE_PREFIX = "message:"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def conversation_id(user_a: str, user_b: str) -> str:
    """Same id for (a, b) and (b, a): the pair is sorted before joining."""
    return ":".join(sorted((user_a, user_b)))


def user_key(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def conversation_prefix(conv_id: str) -> str:
    return f"{MESSAGE_PREFIX}{conv_id}"


def message_key(conv_id: str, created_millis: int) -> str:
    # Not unique: two sends in the same millisecond share a key.
    return f"{conversation_prefix(conv_id)}:{created_millis}"


@dataclass
class UserProfile:
    id: str
    email: str
    name: str
    avatar: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    lastSeen: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            name=data.get("name", ""),
            avatar=data.get("avatar", ""),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            lastSeen=data.get("lastSeen"),
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class MessageRecord:
    senderId: str
    recipientId: str
    message: str
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict) -> "MessageRecord":
        return cls(
            senderId=data["senderId"],
            recipientId=data["recipientId"],
            message=data["message"],
            timestamp=data["timestamp"],
        )

    def as_dict(self) -> dict:
        return asdict(self)


class SocialRecords:
    """Reads and writes profiles and messages through a ``Store``."""

    def __init__(self, store: Store):
        self.store = store

    def create_profile(
        self, user_id: str, email: str, name: str, avatar: str
    ) -> UserProfile:
        profile = UserProfile(
            id=user_id,
            email=email,
            name=name,
            avatar=avatar,
            lastSeen=format_timestamp(utc_now()),
        )
        self.store.set(user_key(user_id), profile.as_dict())
        return profile

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        data = self.store.get(user_key(user_id))
        if data is None:
            return None
        return UserProfile.from_dict(data)

    def update_location(
        self, user_id: str, latitude: float, longitude: float
    ) -> Optional[UserProfile]:
        """
        Overwrite coordinates and lastSeen. Returns None, writing nothing,
        when the user has no profile.
        """
        profile = self.get_profile(user_id)
        if profile is None:
            return None
        profile.latitude = latitude
        profile.longitude = longitude
        profile.lastSeen = format_timestamp(utc_now())
        self.store.set(user_key(user_id), profile.as_dict())
        return profile

    def located_users(self, exclude_id: str) -> list[UserProfile]:
        profiles = [
            UserProfile.from_dict(data)
            for data in self.store.scan_prefix(USER_PREFIX)
        ]
        return [p for p in profiles if p.id != exclude_id and p.has_location]

    def save_message(
        self, sender_id: str, recipient_id: str, text: str
    ) -> MessageRecord:
        now = utc_now()
        record = MessageRecord(
            senderId=sender_id,
            recipientId=recipient_id,
            message=text,
            timestamp=format_timestamp(now),
        )
        created_millis = int(now.timestamp() * 1000)
        key = message_key(conversation_id(sender_id, recipient_id), created_millis)
        self.store.set(key, record.as_dict())
        return record

    def conversation(self, user_a: str, user_b: str) -> list[MessageRecord]:
        prefix = conversation_prefix(conversation_id(user_a, user_b))
        # Trailing separator keeps "a:b" from matching "a:bc".
        records = [
            MessageRecord.from_dict(data)
            for data in self.store.scan_prefix(prefix + ":")
        ]
        records.sort(key=lambda record: parse_timestamp(record.timestamp))
        return records
