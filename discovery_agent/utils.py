import socket


def get_hostname() -> str:
    return socket.gethostname()


def format_hw_address(raw: bytes) -> str:
    """Renders a raw hardware address as lowercase colon-separated hex."""
    return ":".join(f"{octet:02x}" for octet in raw)


if __name__ == "__main__":
    print(get_hostname())
