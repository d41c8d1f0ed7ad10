"""camelCase wire names for the models clients send and receive."""

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

# Serialised by alias (FastAPI default); snake_case names still validate
CAMEL_CASE = ConfigDict(alias_generator=to_camel, populate_by_name=True)
