"""
Source Adapters for secondary listing platforms

Thin REST wrappers around Daft, MyHome and agency WordPress sites. Each
adapter returns candidates as plain dicts in that source's native field
vocabulary; cross-source comparison happens downstream.

Every failure (network error, timeout, bad status, malformed payload) is
raised as SourceAdapterError so the orchestrator can mark the source as
errored without aborting the comparison.
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional

import requests

from config.comparison_config import get_config, ComparisonConfig
from .comparison_models import Property

logger = logging.getLogger(__name__)


class SourceAdapterError(Exception):
    """Raised when a source cannot be queried or returns unusable data"""

    def __init__(self, source_name: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.source_name = source_name
        self.status_code = status_code


def parse_price(price: Any) -> Optional[float]:
    """Price as float; None when absent or not a number (e.g. "POA")"""
    if isinstance(price, bool):
        return None
    if isinstance(price, (int, float)):
        return float(price)
    if isinstance(price, str):
        cleaned = re.sub(r'[^\d.]', '', price)
        if not re.search(r'\d', cleaned):
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def parse_int(value: Any) -> Optional[int]:
    """Leading integer of a count ("3 Bed" -> 3, "2.5" -> 2); None when absent"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = re.match(r'\s*(\d+)', value)
        return int(match.group(1)) if match else None
    return None


def parse_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class SourceAdapter:
    """
    Base class for secondary source adapters.

    Subclasses set source_name and implement search_by_address and
    _transform_item.
    """

    source_name = ""
    extra_headers: Dict[str, str] = {}

    def __init__(self, config: Optional[ComparisonConfig] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or get_config()
        self.settings = self.config.get_source(self.source_name)
        self.timeout = self.settings.timeout_seconds

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': 'application/json',
        })
        self.session.headers.update(self.extra_headers)

    @property
    def base_url(self) -> Optional[str]:
        if not self.settings.endpoint:
            return None
        return self.settings.endpoint.rstrip('/')

    def is_available_for(self, reference: Property) -> bool:
        """Whether this source can be queried for the given property"""
        return self.settings.enabled and bool(self.base_url)

    def search_for_property(self, reference: Property) -> List[Dict[str, Any]]:
        """Search this source for listings that may describe the reference property"""
        return self.search_by_address(reference.search_text)

    def search_by_address(self, address: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def get_by_id(self, listing_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a single listing by its source id; None when the source has no such listing"""
        return None

    def batch_search(self, addresses: List[str], delay_seconds: Optional[float] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Search several addresses sequentially with a delay between requests.

        Failed searches are logged and recorded as empty result lists.
        """
        delay = self.config.batch_search_delay if delay_seconds is None else delay_seconds
        results = {}

        for address in addresses:
            try:
                results[address] = self.search_by_address(address)
            except SourceAdapterError as e:
                logger.warning(f"{self.settings.display_name} search failed for '{address}': {e}")
                results[address] = []

            if delay > 0:
                time.sleep(delay)

        return results

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a URL and decode its JSON body, raising SourceAdapterError on any failure"""
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout:
            raise SourceAdapterError(self.source_name,
                                     f"{self.settings.display_name} request timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise SourceAdapterError(self.source_name,
                                     f"Failed to fetch from {self.settings.display_name}: {e}")

        self._check_status(response)

        try:
            return response.json()
        except ValueError:
            raise SourceAdapterError(self.source_name,
                                     f"Malformed response from {self.settings.display_name}",
                                     status_code=response.status_code)

    def _check_status(self, response: requests.Response) -> None:
        if response.status_code >= 400:
            raise SourceAdapterError(
                self.source_name,
                f"{self.settings.display_name} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

    def _extract_items(self, payload: Any, *list_keys: str) -> List[Dict[str, Any]]:
        """Accept either a bare JSON list or an object wrapping the list under a known key"""
        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, dict):
            items = None
            for key in list_keys:
                if isinstance(payload.get(key), list):
                    items = payload[key]
                    break
            if items is None:
                raise SourceAdapterError(self.source_name,
                                         f"Unexpected response shape from {self.settings.display_name}")
        else:
            raise SourceAdapterError(self.source_name,
                                     f"Unexpected response shape from {self.settings.display_name}")

        return [self._transform_item(item) for item in items if isinstance(item, dict)]

    def _transform_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class DaftAdapter(SourceAdapter):
    """Adapter for the Daft.ie listings API"""

    source_name = "daft"
    extra_headers = {'Referer': 'https://www.daft.ie/'}

    def search_properties(self, location: Optional[str] = None, limit: int = 50,
                          sort: Optional[str] = None, **filters) -> List[Dict[str, Any]]:
        params = {'limit': limit}
        if location:
            params['location'] = location
        if sort:
            params['sort'] = sort
        for key, param in (('min_price', 'priceFrom'), ('max_price', 'priceTo'),
                           ('property_type', 'propertyType'),
                           ('min_beds', 'numBedsFrom'), ('max_beds', 'numBedsTo')):
            if filters.get(key):
                params[param] = filters[key]

        payload = self._get_json(f"{self.base_url}/v1/listings", params)
        return self._extract_items(payload, 'listings', 'results')

    def search_by_address(self, address: str) -> List[Dict[str, Any]]:
        clean_address = re.sub(r'\s+', ' ', re.sub(r'[^\w\s,]', '', address or '')).strip()
        return self.search_properties(location=clean_address, limit=10, sort='relevance')

    def get_by_id(self, listing_id: str) -> Optional[Dict[str, Any]]:
        payload = self._get_json(f"{self.base_url}/v1/listings/{listing_id}")
        if not isinstance(payload, dict) or not payload:
            return None
        return self._transform_item(payload)

    def _check_status(self, response: requests.Response) -> None:
        if response.status_code == 429:
            raise SourceAdapterError(self.source_name,
                                     "Rate limit exceeded. Please try again later.",
                                     status_code=429)
        super()._check_status(response)

    def _transform_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        seller = item.get('seller') or {}
        coordinates = (item.get('point') or {}).get('coordinates') or []

        images = []
        for image in (item.get('media') or {}).get('images') or []:
            if isinstance(image, dict) and image.get('url'):
                images.append(image['url'])
        if isinstance(item.get('images'), list):
            images.extend(image for image in item['images'] if image)

        return {
            'id': str(item.get('id') or item.get('daftShortcode') or ''),
            'title': item.get('title') or item.get('displayAddress') or '',
            'price': parse_price(item.get('price')),
            'bedrooms': parse_int(item.get('numBedrooms')),
            'bathrooms': parse_int(item.get('numBathrooms')),
            'propertyType': item.get('propertyType') or '',
            'address': item.get('displayAddress') or '',
            'county': item.get('county') or '',
            'eircode': item.get('eircode') or '',
            'berRating': item.get('berRating') or '',
            'floorArea': parse_int(item.get('floorArea')),
            'description': item.get('description') or '',
            'images': images,
            'contactName': seller.get('name') or '',
            'phone': seller.get('phone') or '',
            'latitude': parse_float(coordinates[1]) if len(coordinates) > 1 else 0.0,
            'longitude': parse_float(coordinates[0]) if coordinates else 0.0,
            'publishDate': item.get('publishDate') or '',
            'lastUpdated': item.get('lastUpdateDate') or '',
        }


class MyHomeAdapter(SourceAdapter):
    """Adapter for the MyHome.ie search API"""

    source_name = "myhome"
    extra_headers = {
        'Referer': 'https://www.myhome.ie/',
        'X-Requested-With': 'XMLHttpRequest',
    }

    def search_properties(self, county: Optional[str] = None, page: int = 1,
                          page_size: int = 50, **filters) -> List[Dict[str, Any]]:
        params = {'page': page, 'pageSize': page_size}
        if county:
            params['county'] = county
        for key, param in (('min_price', 'minPrice'), ('max_price', 'maxPrice'),
                           ('property_type', 'propertyType'),
                           ('min_beds', 'minBeds'), ('max_beds', 'maxBeds')):
            if filters.get(key):
                params[param] = filters[key]

        payload = self._get_json(f"{self.base_url}/search", params)
        return self._extract_items(payload, 'SearchResults', 'results', 'properties')

    def search_by_address(self, address: str) -> List[Dict[str, Any]]:
        # MyHome searches by county, taken from the last address component
        parts = [part.strip() for part in (address or '').split(',') if part.strip()]
        county = parts[-1] if parts else None
        return self.search_properties(county=county, page_size=20)

    def get_by_id(self, listing_id: str) -> Optional[Dict[str, Any]]:
        payload = self._get_json(f"{self.base_url}/properties/{listing_id}")
        if not isinstance(payload, dict) or not payload:
            return None
        return self._transform_item(payload)

    def _check_status(self, response: requests.Response) -> None:
        if response.status_code == 403:
            raise SourceAdapterError(self.source_name,
                                     "Access denied. MyHome API may require authentication.",
                                     status_code=403)
        super()._check_status(response)

    def _transform_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        contact = item.get('brochureContactDetails') or {}
        brochure_map = item.get('brochureMap') or {}

        return {
            'id': str(item.get('id') or item.get('propertyId') or ''),
            'displayAddress': item.get('displayAddress') or item.get('address') or '',
            'price': parse_price(item.get('price')),
            'bedrooms': parse_int(item.get('bedrooms') or item.get('bedsString')),
            'bathrooms': parse_int(item.get('bathrooms')),
            'propertyType': item.get('propertyType') or '',
            'county': item.get('county') or item.get('region') or '',
            'region': item.get('region') or item.get('location') or '',
            'eircode': item.get('eircode') or '',
            'berRating': item.get('berRating') or '',
            'floorArea': parse_int(item.get('floorArea')),
            'description': self._extract_description(item),
            'photos': self._extract_photos(item),
            'contactDetails': {
                'firstName': contact.get('firstName') or '',
                'lastName': contact.get('lastName') or '',
                'phone': contact.get('phone') or '',
                'email': contact.get('email') or '',
            },
            'location': {
                'latitude': parse_float(brochure_map.get('latitude')),
                'longitude': parse_float(brochure_map.get('longitude')),
            },
            'createdOnDate': item.get('createdOnDate') or '',
            'modifiedOnDate': item.get('modifiedOnDate') or '',
        }

    @staticmethod
    def _extract_description(item: Dict[str, Any]) -> str:
        content = item.get('brochureContent')
        if content:
            blocks = content if isinstance(content, list) else [content]
            for block in blocks:
                text = block.get('content') if isinstance(block, dict) else None
                if text and len(text) > 50:
                    return text
        return item.get('description') or ''

    @staticmethod
    def _extract_photos(item: Dict[str, Any]) -> List[str]:
        photos = []
        for photo in item.get('photos') or []:
            if isinstance(photo, dict) and (photo.get('url') or photo.get('src')):
                photos.append(photo.get('url') or photo.get('src'))
        return photos


class WordPressAdapter(SourceAdapter):
    """
    Adapter for agency WordPress sites exposing a 'properties' post type.

    The site is resolved per agency from the configured agency URL map,
    unless a fixed endpoint is configured for the source.
    """

    source_name = "wordpress"

    def resolve_base_url(self, agency_id: Optional[str] = None) -> Optional[str]:
        url = self.config.get_wordpress_url(agency_id) or self.settings.endpoint
        return url.rstrip('/') if url else None

    def is_available_for(self, reference: Property) -> bool:
        return self.settings.enabled and bool(self.resolve_base_url(reference.agency_id))

    def search_for_property(self, reference: Property) -> List[Dict[str, Any]]:
        base_url = self.resolve_base_url(reference.agency_id)
        return self.search_by_title(reference.title or reference.search_text, base_url=base_url)

    def search_properties(self, base_url: Optional[str] = None, search: Optional[str] = None,
                          per_page: int = 50, page: int = 1, **filters) -> List[Dict[str, Any]]:
        base_url = base_url or self.base_url
        if not base_url:
            raise SourceAdapterError(self.source_name, "WordPress site is not configured")

        params = {'per_page': per_page, 'page': page, '_embed': 'true'}
        if search:
            params['search'] = search
        for key, param in (('county', 'meta_query[county]'), ('property_type', 'meta_query[type]'),
                           ('min_price', 'meta_query[min_price]'), ('max_price', 'meta_query[max_price]'),
                           ('status', 'status')):
            if filters.get(key):
                params[param] = filters[key]

        payload = self._get_json(f"{base_url}/wp-json/wp/v2/properties", params)
        return self._extract_items(payload)

    def search_by_title(self, title: str, base_url: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.search_properties(base_url=base_url, search=title, per_page=10)

    def search_by_address(self, address: str) -> List[Dict[str, Any]]:
        return self.search_properties(search=address, per_page=10)

    def get_by_id(self, listing_id: str, base_url: Optional[str] = None) -> Optional[Dict[str, Any]]:
        base_url = base_url or self.base_url
        if not base_url:
            raise SourceAdapterError(self.source_name, "WordPress site is not configured")
        payload = self._get_json(f"{base_url}/wp-json/wp/v2/properties/{listing_id}", {'_embed': 'true'})
        if not isinstance(payload, dict) or not payload:
            return None
        return self._transform_item(payload)

    def test_connection(self, base_url: Optional[str] = None) -> bool:
        """Check that the site answers the properties endpoint"""
        base_url = base_url or self.base_url
        if not base_url:
            return False
        try:
            response = self.session.get(f"{base_url}/wp-json/wp/v2/properties",
                                        params={'per_page': 1}, timeout=5)
            return response.status_code == 200
        except requests.RequestException as e:
            logger.warning(f"WordPress connection test failed for {base_url}: {e}")
            return False

    def _transform_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        meta = item.get('meta') or {}
        acf = item.get('acf') or {}

        def custom_field(name: str) -> Any:
            return meta.get(name) or acf.get(name) or ''

        return {
            'id': str(item.get('id') or ''),
            'title': (item.get('title') or {}).get('rendered') or '',
            'content': (item.get('content') or {}).get('rendered') or '',
            'price': parse_price(custom_field('price')),
            'bedrooms': parse_int(custom_field('bedrooms')),
            'bathrooms': parse_int(custom_field('bathrooms')),
            'propertyType': custom_field('property_type'),
            'propertyCounty': custom_field('property_county'),
            'address': custom_field('address'),
            'berRating': custom_field('ber_rating'),
            'floorArea': parse_int(custom_field('floor_area')),
            'images': self._extract_images(item),
            'agentName': custom_field('agent_name'),
            'agentPhone': custom_field('agent_phone'),
            'agentEmail': custom_field('agent_email'),
            'publishDate': item.get('date') or '',
            'modifiedDate': item.get('modified') or '',
            'status': item.get('status') or 'publish',
            'featured': bool(item.get('featured')),
        }

    @staticmethod
    def _extract_images(item: Dict[str, Any]) -> List[str]:
        images = []

        featured = ((item.get('_embedded') or {}).get('wp:featuredmedia') or [{}])[0]
        if isinstance(featured, dict) and featured.get('source_url'):
            images.append(featured['source_url'])

        gallery = (item.get('acf') or {}).get('gallery') or (item.get('meta') or {}).get('gallery')
        if isinstance(gallery, list):
            for image in gallery:
                if isinstance(image, str):
                    images.append(image)
                elif isinstance(image, dict) and image.get('url'):
                    images.append(image['url'])

        return images


ADAPTER_CLASSES = {
    'daft': DaftAdapter,
    'myhome': MyHomeAdapter,
    'wordpress': WordPressAdapter,
}


def create_default_adapters(config: Optional[ComparisonConfig] = None) -> Dict[str, SourceAdapter]:
    """Instantiate an adapter for every enabled secondary source with a known adapter class"""
    config = config or get_config()
    adapters = {}
    for source in config.secondary_sources:
        adapter_class = ADAPTER_CLASSES.get(source.name)
        if adapter_class is None:
            logger.warning(f"No adapter available for source '{source.name}'")
            continue
        if source.enabled:
            adapters[source.name] = adapter_class(config)
    return adapters
