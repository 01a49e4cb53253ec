__version__ = "0.3.0"

from .exceptions import (
    MarbleLexiconError as MarbleLexiconError,
    ConfigError as ConfigError,
    DataImportError as DataImportError,
    DuplicateIdError as DuplicateIdError,
    LoadError as LoadError,
    DatabaseError as DatabaseError,
    ExportError as ExportError,
)

from .models import (
    DictionaryType as DictionaryType,
    SenseType as SenseType,
    PositionalIndex as PositionalIndex,
    Domain as Domain,
    Sense as Sense,
    Entry as Entry,
    SubDomain as SubDomain,
    Taxonomy as Taxonomy,
)

from .config import (
    ConversionConfig as ConversionConfig,
    DictionaryConfig as DictionaryConfig,
    load_config as load_config,
)

from .converter import (
    ConversionResult as ConversionResult,
    convert as convert,
)

from .importer import (
    LexiconLoader as LexiconLoader,
    import_lexicons as import_lexicons,
)
