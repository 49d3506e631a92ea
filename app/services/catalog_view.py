"""Catalog view — filter, search and page state for one consumer of the catalog."""
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.schemas.catalog_schema import FilterCriteria, Page
from app.schemas.property_schema import PropertyRead
from app.services.catalog_service import CatalogSynchronizer, validation_messages
from app.services.export_service import ExportFile, export_to_table
from app.services.filter_service import filter_properties
from app.services.pagination import paginate


class CatalogView:
    """Filtered, paginated window onto a CatalogSynchronizer.

    Non-privileged views never see a property with is_public=False, whatever
    the criteria say. Changing the criteria or the search query goes back to
    page 1.
    """

    def __init__(
        self,
        catalog: CatalogSynchronizer,
        page_size: Optional[int] = None,
        privileged: bool = False,
        base_criteria: Optional[FilterCriteria] = None,
    ):
        self._catalog = catalog
        self._page_size = page_size
        self._privileged = privileged
        self._base_criteria = base_criteria or FilterCriteria()
        self._criteria = FilterCriteria()
        self._search_query = ""
        self._page_number = 1

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def page_number(self) -> int:
        return self._page_number

    def apply_filters(self, criteria: Union[FilterCriteria, Mapping[str, Any], None] = None) -> None:
        if criteria is None:
            criteria = FilterCriteria()
        elif not isinstance(criteria, FilterCriteria):
            try:
                criteria = FilterCriteria.model_validate(dict(criteria))
            except PydanticValidationError as e:
                raise ValidationError("Filtros inválidos", detail=validation_messages(e)) from e
        self._criteria = criteria
        self._page_number = 1

    def set_search_query(self, text: Optional[str]) -> None:
        self._search_query = (text or "").strip()
        self._page_number = 1

    def _visible(self) -> List[PropertyRead]:
        records = self._catalog.all()
        if not self._privileged:
            records = [record for record in records if record.is_public]
        if not self._base_criteria.is_empty():
            records = filter_properties(records, self._base_criteria)
        return records

    def results(self) -> List[PropertyRead]:
        """Every record that passes the current filters, newest first."""
        return filter_properties(self._visible(), self._criteria, self._search_query)

    def top(self, limit: int) -> List[PropertyRead]:
        return self.results()[:max(limit, 0)]

    def recommendations(self, limit: int) -> List[PropertyRead]:
        """Up to `limit` other visible listings, only when the current filters match fewer than `limit`.

        Picks the newest listings the search left out; filters and query do not apply.
        """
        matched = self.results()
        if len(matched) >= limit:
            return []
        matched_ids = {record.id for record in matched}
        return [record for record in self._visible() if record.id not in matched_ids][:limit]

    def get_page(self, page_number: Optional[int] = None) -> Page:
        page = paginate(self.results(), self._page_size, page_number or self._page_number)
        self._page_number = page.page
        return page

    def export_current_view(self, filename: str) -> ExportFile:
        return export_to_table(self.results(), filename)
