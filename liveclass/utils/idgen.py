from ulid import ULID


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_live_class_id() -> str:
    return new_ulid("lc_")


def new_room_id() -> str:
    return new_ulid("ro_")


def new_event_id() -> str:
    return new_ulid("ev_")
