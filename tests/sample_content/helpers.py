def make_key(idx: int) -> bytes:
    return f"key{idx:04d}".encode()
