import re
from enum import Enum

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url

from storage.explorer.errors import ExplorerConfigError

# Go-style MySQL DSN: [user[:password]@][net[(addr)]]/dbname[?param1=value1&...]
MYSQL_DSN_PATTERN = re.compile(
    r"^(?:(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@)?"
    r"(?:(?P<net>[a-z0-9]+)(?:\((?P<addr>[^)]*)\))?)?"
    r"/(?P<database>[^?]*)"
    r"(?:\?(?P<params>.*))?$"
)
MYSQL_SUPPORTED_DSN_PARAMS = ("charset",)


class SqlDialect(str, Enum):
    POSTGRES = "postgres"
    MYSQL = "mysql"

    @classmethod
    def from_prefix(cls, prefix: str) -> "SqlDialect":
        """Selects the dialect whose name the given token starts with ("postgresql" -> POSTGRES). Case sensitive."""
        prefix = prefix.strip()
        for dialect in cls:
            if prefix.startswith(dialect.value):
                return dialect
        raise ExplorerConfigError(f"Explorer db dialect must be postgres or mysql, got {prefix!r}")

    @property
    def drivername(self) -> str:
        return {
            SqlDialect.POSTGRES: "postgresql+psycopg",
            SqlDialect.MYSQL: "mysql+pymysql",
        }[self]

    @property
    def paramstyle(self) -> str:
        # Placeholder convention bound parameters are rendered with, see build_engine
        return {
            SqlDialect.POSTGRES: "pyformat",
            SqlDialect.MYSQL: "format",
        }[self]

    def build_url(self, params: str) -> URL:
        params = params.strip()
        if "://" in params:
            return make_url(params).set(drivername=self.drivername)
        if self is SqlDialect.POSTGRES:
            # libpq keyword/value string, handed to the driver as-is (see build_engine)
            return URL.create(self.drivername)
        return _mysql_dsn_to_url(params)

    def build_engine(self, params: str, **engine_kwargs) -> Engine:
        url = self.build_url(params)
        connect_args = engine_kwargs.pop("connect_args", {})
        if self is SqlDialect.POSTGRES and "://" not in params:
            connect_args = {"conninfo": params.strip(), **connect_args}
        return create_engine(
            url, connect_args=connect_args, paramstyle=self.paramstyle, pool_pre_ping=True, **engine_kwargs
        )


def _mysql_dsn_to_url(dsn: str) -> URL:
    match = MYSQL_DSN_PATTERN.match(dsn)
    if match is None:
        raise ExplorerConfigError(f"Invalid MySQL DSN: {dsn!r}")

    host, port = None, None
    addr = match.group("addr")
    if addr:
        if match.group("net") == "unix":
            raise ExplorerConfigError("MySQL unix socket DSNs are not supported, use tcp(host:port)")
        host, _, port_str = addr.rpartition(":") if ":" in addr else (addr, "", "")
        if port_str:
            try:
                port = int(port_str)
            except ValueError:
                raise ExplorerConfigError(f"Invalid MySQL port in DSN: {port_str!r}") from None

    # Only options PyMySQL understands are carried over, Go driver options (parseTime, loc...) are dropped
    query = {}
    if match.group("params"):
        for pair in match.group("params").split("&"):
            key, _, value = pair.partition("=")
            if key in MYSQL_SUPPORTED_DSN_PARAMS:
                query[key] = value

    return URL.create(
        SqlDialect.MYSQL.drivername,
        username=match.group("user") or None,
        password=match.group("password"),
        host=host or None,
        port=port,
        database=match.group("database") or None,
        query=query,
    )
