import wirescan_missing_dependency  # noqa: F401


class NeverLoaded:
    pass
