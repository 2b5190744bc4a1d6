from typing import Any, ClassVar, Dict

import pytest
from attrs import define, field

from exdsn.schema import dsn_meta


@define
class HttpDsn:
    __dsn_template__: ClassVar[str] = "http(s)://$Path"

    scheme: str = ""
    path: str = ""
    params: Dict[str, str] = field(factory=dict)


@define
class FtpDsn:
    __dsn_template__: ClassVar[str] = (
        "ftp://$Username:$Password@$Host:$Port/$BasePath"
    )

    scheme: str = ""
    username: str = ""
    password: str = ""
    host: str = ""
    port: int = field(default=0, metadata=dsn_meta(default="21"))
    base_path: str = ""
    params: Dict[str, str] = field(factory=dict)


@define
class PgDsn:
    __dsn_template__: ClassVar[str] = (
        "(postgres|postgresql)://$User[:$Password]@$Host[:$Port]/$Database"
    )

    scheme: str = ""
    user: str = ""
    password: str = ""
    host: str = ""
    port: int = field(default=0, metadata=dsn_meta(default="5432"))
    database: str = ""
    params: Dict[str, str] = field(factory=dict)
    engine: Any = None


@define
class SmtpDsn:
    __dsn_template__: ClassVar[str] = "smtp://$Host:$Port[/$Tls]"

    host: str = ""
    port: int = 0
    tls: bool = field(default=False, metadata=dsn_meta(default="false"))


@pytest.fixture
def http_dsn():
    return HttpDsn


@pytest.fixture
def ftp_dsn():
    return FtpDsn


@pytest.fixture
def pg_dsn():
    return PgDsn


@pytest.fixture
def smtp_dsn():
    return SmtpDsn
