from pydantic import BaseModel, ConfigDict, ValidationError
from typing import Any, Dict, Mapping, Optional


class BaseGolfModel(BaseModel):
    """Assignments are validated; fields accept both their name and their aliases."""
    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    def update_field(self, field_name: str, value: Any) -> Optional[str]:
        """Set one field from user or extracted input.

        Returns the validation message on failure, leaving the old value in place.
        """
        try:
            setattr(self, field_name, value)
        except ValidationError as e:
            return e.errors()[0]["msg"]
        return None

    def update_fields(self, changes: Mapping[str, Any]) -> Dict[str, str]:
        """Set several fields independently. Returns {field: message} for rejected ones."""
        rejected = {}
        for name, value in changes.items():
            message = self.update_field(name, value)
            if message:
                rejected[name] = message
        return rejected
