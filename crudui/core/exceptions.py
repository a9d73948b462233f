# crudui/core/exceptions.py


class CrudUIError(Exception):
    """Base class for errors raised by the admin UI"""


class ConfigurationError(CrudUIError):
    """Static configuration or database credentials are unusable"""


class RecordNotFoundError(CrudUIError):
    """No row matches the requested primary key"""

    def __init__(self, table_name: str, key):
        self.table_name = table_name
        self.key = key
        super().__init__(f"No record in {table_name} with key {key!r}")


class InvalidFieldError(CrudUIError):
    """A submitted field name is not an editable column of the table"""

    def __init__(self, table_name: str, field: str):
        self.table_name = table_name
        self.field = field
        super().__init__(f"Field {field!r} cannot be edited on {table_name}")


class ReadOnlyTableError(CrudUIError):
    """Write attempted against a custom SQL (virtual) table"""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table {table_name} is read-only")


class MissingValueError(CrudUIError):
    """An inline edit named a field but submitted no value for it"""

    def __init__(self, table_name: str, field: str):
        self.table_name = table_name
        self.field = field
        super().__init__(f"No value submitted for {table_name}.{field}")
