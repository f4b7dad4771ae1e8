"""
Comparison Store

Loads reference properties from, and records comparison summaries to, the
hosted Supabase database. The reconciliation engine never persists results
itself; callers such as the audit CLI decide when to store them.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from .comparison_models import Property, PropertyComparison

logger = logging.getLogger(__name__)


class ComparisonStore:
    """
    Data access for reference properties and stored comparisons
    """

    properties_table = 'properties'
    comparisons_table = 'property_comparisons'

    def __init__(self, supabase_client: Client):
        self.supabase = supabase_client

    def load_properties(self, agency_id: Optional[str] = None, limit: int = 100) -> List[Property]:
        """
        Load reference properties from the primary-source table

        Args:
            agency_id: Restrict to one agency when given
            limit: Maximum number of properties to load

        Returns:
            List of Property objects (empty on error)
        """
        try:
            query = self.supabase.table(self.properties_table).select('*')
            if agency_id:
                query = query.eq('agency_id', agency_id)
            response = query.order('updated_at', desc=True).limit(limit).execute()

            properties = [Property.from_dict(row) for row in response.data]
            logger.info(f"Loaded {len(properties)} properties for comparison")
            return properties

        except Exception as e:
            logger.error(f"Error loading properties: {str(e)}")
            return []

    def get_property(self, property_id: Any) -> Optional[Property]:
        try:
            response = self.supabase.table(self.properties_table).select('*').eq('id', property_id).limit(1).execute()
            if not response.data:
                logger.warning(f"Property {property_id} not found")
                return None
            return Property.from_dict(response.data[0])

        except Exception as e:
            logger.error(f"Error loading property {property_id}: {str(e)}")
            return None

    def save_comparison(self, comparison: PropertyComparison,
                        source_data_version: Optional[str] = None) -> bool:
        """
        Insert a comparison summary row

        Args:
            comparison: Result to record
            source_data_version: Optional caller-defined version of the source data

        Returns:
            True if the row was written
        """
        try:
            record = self._comparison_record(comparison, source_data_version)
            self.supabase.table(self.comparisons_table).insert(record).execute()
            logger.info(f"Stored comparison for property {comparison.property.id} "
                        f"(consistency {comparison.overall_consistency}%)")
            return True

        except Exception as e:
            logger.error(f"Error storing comparison for property {comparison.property.id}: {str(e)}")
            return False

    def get_latest_comparison(self, property_id: Any) -> Optional[Dict]:
        """Most recently stored comparison summary for a property"""
        try:
            response = self.supabase.table(self.comparisons_table).select('*').eq(
                'property_id', property_id
            ).order('compared_at', desc=True).limit(1).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error loading latest comparison for property {property_id}: {str(e)}")
            return None

    @staticmethod
    def _comparison_record(comparison: PropertyComparison,
                           source_data_version: Optional[str]) -> Dict[str, Any]:
        fields = [
            {
                'key': f.key,
                'sources': f.sources,
                'has_differences': f.has_differences,
                'significant_difference': f.significant_difference,
                'confidence_score': f.confidence_score,
            }
            for f in comparison.fields
        ]
        sources = [
            {
                'name': s.name,
                'status': s.status,
                'last_sync': s.last_sync,
                'error_message': s.error_message,
                'match_found': s.match_found,
            }
            for s in comparison.sources
        ]

        return {
            'property_id': comparison.property.id,
            'agency_id': comparison.property.agency_id,
            'overall_consistency': comparison.overall_consistency,
            'critical_issues': comparison.critical_issues,
            'suggestions': comparison.suggestions,
            # non-JSON source values (e.g. Decimal) are stored as strings
            'fields': json.loads(json.dumps(fields, default=str)),
            'sources': sources,
            'source_data_version': source_data_version,
            'compared_at': comparison.last_updated,
        }
