"""
Shared base for API schemas: snake_case attributes, camelCase JSON
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True


def blank_to_none(v):
    """Form inputs send '' or 'null' for cleared optional fields"""
    if v is None or v == 'null' or (isinstance(v, str) and v.strip() == ''):
        return None
    return v.strip() if isinstance(v, str) else v


def fmt_number(value) -> str:
    """7.0 -> '7', 7.5 -> '7.5'; ints unchanged"""
    return f"{value:g}" if isinstance(value, float) else str(value)
