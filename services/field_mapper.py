"""
Field Mapper

Translates each source's native field names onto canonical attribute names
using the static field maps in the comparison configuration.
"""

import logging
from typing import Any, Dict, Optional

from config.comparison_config import get_config, ComparisonConfig
from .comparison_models import Property
from .normalization import is_missing

logger = logging.getLogger(__name__)


class FieldMapper:
    """
    Extracts canonical attribute values from source-native records.

    Absent data is always returned as None. Unknown sources or
    attributes raise ValueError.
    """

    def __init__(self, config: Optional[ComparisonConfig] = None):
        self.config = config or get_config()

    def native_field_name(self, source_name: str, attribute: str) -> Optional[str]:
        """Return the native field name for an attribute, or None if the source lacks it"""
        self.config.get_field(attribute)
        source = self.config.get_source(source_name)
        return source.field_map.get(attribute)

    def map_field(self, source_name: str, candidate: Optional[Dict[str, Any]],
                  attribute: str) -> Any:
        """
        Extract one canonical attribute from a raw candidate.

        Args:
            source_name: Configured source name (e.g. 'daft')
            candidate: Raw record in the source's native shape, or None
            attribute: Canonical attribute key (e.g. 'price')

        Returns:
            The raw, uncoerced value, or None when missing
        """
        native_name = self.native_field_name(source_name, attribute)

        if candidate is None or native_name is None:
            return None

        value = candidate.get(native_name)
        if is_missing(value):
            return None
        return value

    def map_candidate(self, source_name: str,
                      candidate: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Map every canonical attribute, preserving configured field order"""
        return {
            key: self.map_field(source_name, candidate, key)
            for key in self.config.field_keys
        }

    def candidate_address(self, source_name: str, candidate: Dict[str, Any]) -> str:
        """Read a candidate's display address, trying the source's address fields in order"""
        source = self.config.get_source(source_name)
        for native_name in source.address_fields:
            value = candidate.get(native_name)
            if not is_missing(value):
                return str(value)
        return ""

    def reference_record(self, reference: Property) -> Dict[str, Any]:
        """Primary-source record for the reference property"""
        return {
            'id': reference.id,
            'title': reference.title,
            'price': reference.price,
            'bedrooms': reference.bedrooms,
            'bathrooms': reference.bathrooms,
            'type': reference.type,
            'address': reference.address,
            'city': reference.city,
            'county': reference.county,
            'postcode': reference.postcode,
            'ber_rating': reference.ber_rating,
            'description': reference.description,
            'images': list(reference.images),
            'agent_name': reference.agent_name,
            'agent_phone': reference.agent_phone,
            'agent_email': reference.agent_email,
            'status': reference.status,
            'created_at': reference.created_at,
            'updated_at': reference.updated_at,
        }
