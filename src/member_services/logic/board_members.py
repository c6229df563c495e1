"""
Board member lookup in the directory.

Department names in the app and in the directory drift apart ("OSL
Karrieredagene" against "Karrieredagene"), so the lookup tries progressively
looser matches and stops at the first that finds anyone.
"""

from typing import Any, Callable, Optional

from member_services.clients.directory import DirectoryClient
from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.errors import ClientNotFoundError, ClientRequestError
from member_services.handlers.utils.errors import ErrorContext, ResourceNotFoundError
from member_services.handlers.utils.observability import logger, tracer
from member_services.models.input import BoardMembersRequest
from member_services.models.output import BoardMembersResponse

DEPARTMENT_COLLECTION = 'departments'
MIN_SEARCH_WORD_LENGTH = 4


def search_term(department_name: str) -> str:
    """Last word longer than three characters, else the whole name."""
    words = [word for word in department_name.split(' ') if len(word) >= MIN_SEARCH_WORD_LENGTH]
    return words[-1] if words else department_name


def lookup_strategies(department_name: str) -> list[tuple[str, str, bool]]:
    """(strategy name, value, use contains()) in the order they are tried."""
    strategies = [('exact', department_name, False)]
    if ' ' in department_name.strip():
        base_name = department_name.split(' ')[-1]
        if base_name:
            strategies.append(('base_name', base_name, False))
    strategies.append(('contains', search_term(department_name), True))
    return strategies


class BoardMembersService:
    def __init__(self, document_store: DocumentStoreClient, directory: DirectoryClient, database_id: str = 'app'):
        self.store = document_store
        self.directory = directory
        self.database_id = database_id

    def _department(self, department_id: str, context: Optional[ErrorContext]) -> dict[str, Any]:
        try:
            return self.store.get_document(self.database_id, DEPARTMENT_COLLECTION, department_id)
        except ClientNotFoundError as exc:
            raise ResourceNotFoundError('Department', department_id, context=context) from exc

    def _search(self, strategy: str, find: Callable[[str], list[dict[str, Any]]], value: str) -> list[dict[str, Any]]:
        try:
            users = find(value)
        except ClientRequestError as exc:
            logger.info('Directory rejected the search', extra={'strategy': strategy, 'value': value, 'error': exc.message})
            return []
        logger.info('Directory search finished', extra={'strategy': strategy, 'value': value, 'count': len(users)})
        return users

    @tracer.capture_method(capture_response=False)
    def find_board_members(
        self,
        request: BoardMembersRequest,
        context: Optional[ErrorContext] = None,
    ) -> BoardMembersResponse:
        department = self._department(request.department_id, context)
        department_name = str(department.get('name') or '').strip()
        if not department_name:
            raise ResourceNotFoundError('Department name', request.department_id, context=context)

        tracer.put_annotation('department', department_name)
        tracer.put_annotation('campus', request.campus)

        users: list[dict[str, Any]] = []
        used: Optional[str] = None
        for strategy, value, contains in lookup_strategies(department_name):
            find = self.directory.users_with_department_containing if contains else self.directory.users_in_department
            users = self._search(strategy, find, value)
            if users:
                used = strategy
                break

        return BoardMembersResponse(department=department, users=users, count=len(users), strategy=used)
