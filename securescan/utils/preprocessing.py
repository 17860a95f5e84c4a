def normalize_url(url: str) -> str:
    return (url or "").strip()


def split_host_labels(host: str) -> list:
    return host.split(".") if host else []
