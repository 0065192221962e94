"""Per-run generator configuration"""

from dataclasses import dataclass, fields, replace

from .errors import ConfigError

DEFAULT_THRIFT_IMPORT = "git.apache.org/thrift.git/lib/go/thrift"


@dataclass(frozen=True)
class GoOptions:
    """Options that affect generated output"""
    package_prefix: str = ""
    thrift_import: str = DEFAULT_THRIFT_IMPORT
    out_dir_base: str = "gen-go"
    gofmt: bool = False

    @classmethod
    def from_option_string(cls, option_string: str) -> 'GoOptions':
        """Parse `key=value,key=value`; a bare key sets a flag"""
        known = {f.name for f in fields(cls)}
        values = {}
        for item in option_string.split(','):
            item = item.strip()
            if not item:
                continue
            key, sep, value = item.partition('=')
            key = key.strip()
            if key not in known:
                raise ConfigError(f"unknown generator option '{key}'")
            if key == 'gofmt':
                values[key] = not sep or value.strip().lower() in ('1', 'true', 'yes')
            else:
                values[key] = value.strip()
        return cls(**values)

    def merged(self, **overrides) -> 'GoOptions':
        """Copy with every non-None override applied"""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
