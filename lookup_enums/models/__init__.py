from .mixins import LookupEnumMixin  # noqa: F401
