"""
Membership verification against the ERP customer categories.

A student is a member when one of their customer categories carries the name
of an active membership. The newest active membership (by expiry date) wins.
"""

from typing import Any, Optional

from member_services.clients.document_store import DocumentStoreClient, Query
from member_services.erp import ErpClient
from member_services.handlers.utils.errors import ErrorContext, ResourceNotFoundError
from member_services.handlers.utils.observability import logger, tracer
from member_services.logic.membership_rules import normalize_student_number
from member_services.models.output import VerifyMembershipResponse

MEMBERSHIP_COLLECTION = 'memberships'
MEMBERSHIP_FIELDS = ['$id', 'membership_id', 'name', 'price', 'category', 'status', 'expiryDate']


def latest_matching_membership(
    memberships: list[dict[str, Any]],
    category_names: list[str],
) -> Optional[dict[str, Any]]:
    """The membership with the latest expiry date whose name matches a category, case-insensitively."""
    names = {name.strip().lower() for name in category_names if name}
    ordered = sorted(memberships, key=lambda membership: str(membership.get('expiryDate') or ''), reverse=True)
    for membership in ordered:
        if str(membership.get('name') or '').strip().lower() in names:
            return membership
    return None


class MembershipVerificationService:
    def __init__(self, erp_client: ErpClient, document_store: DocumentStoreClient, database_id: str = 'app'):
        self.erp = erp_client
        self.store = document_store
        self.database_id = database_id

    def active_memberships(self) -> list[dict[str, Any]]:
        return self.store.list_documents(self.database_id, MEMBERSHIP_COLLECTION, [
            Query.equal('status', True),
            Query.select(MEMBERSHIP_FIELDS),
        ])

    @tracer.capture_method(capture_response=False)
    def verify(self, snumber: str, context: Optional[ErrorContext] = None) -> VerifyMembershipResponse:
        """
        Find the student's current membership.

        Raises:
            ResourceNotFoundError: no active memberships exist, or none matches the student
        """
        student_id = normalize_student_number(snumber)
        tracer.put_annotation('student_id', student_id)

        memberships = self.active_memberships()
        if not memberships:
            raise ResourceNotFoundError('Active membership', 'any', context=context)

        session = self.erp.login()
        category_ids = session.companies.get_company_categories(student_id)
        tree = {pair.key: pair.value or '' for pair in session.companies.get_customer_category_tree()}
        category_names = [tree.get(str(category_id), '') for category_id in category_ids]
        logger.info('Customer categories resolved', extra={
            'student_id': student_id,
            'category_ids': category_ids,
            'category_names': category_names,
        })

        membership = latest_matching_membership(memberships, category_names)
        if membership is None:
            raise ResourceNotFoundError('Membership for student', str(student_id), context=context)
        return VerifyMembershipResponse(membership=membership)
