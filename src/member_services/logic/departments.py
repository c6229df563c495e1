"""Mirror of the ERP department list in the document store."""

from typing import Optional

from aws_lambda_powertools.metrics import MetricUnit

from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.errors import ClientRequestError
from member_services.erp import ErpClient
from member_services.erp.models import Department
from member_services.handlers.utils.errors import ErrorContext
from member_services.handlers.utils.observability import logger, metrics, tracer
from member_services.logic.membership_rules import campus_for_department
from member_services.models.output import DepartmentRecord, DepartmentSyncResponse

DEPARTMENT_COLLECTION = 'departments'
DOCUMENT_EXISTS_STATUS = 409


def department_record(department: Department) -> DepartmentRecord:
    return DepartmentRecord(
        id=department.id,
        name=department.name,
        campus=campus_for_department(department.id).name,
    )


class DepartmentSyncService:
    def __init__(self, erp_client: ErpClient, document_store: DocumentStoreClient, database_id: str = '24so'):
        self.erp = erp_client
        self.store = document_store
        self.database_id = database_id

    @tracer.capture_method(capture_response=False)
    def sync(self, context: Optional[ErrorContext] = None) -> DepartmentSyncResponse:
        """Create one document per ERP department; departments already mirrored are skipped."""
        departments = self.erp.login().clients.get_department_list()
        records = [department_record(department) for department in departments]

        created = 0
        skipped = 0
        for record in records:
            try:
                self.store.create_document(
                    self.database_id,
                    DEPARTMENT_COLLECTION,
                    str(record.id),
                    record.model_dump(by_alias=True),
                )
            except ClientRequestError as exc:
                if exc.status_code != DOCUMENT_EXISTS_STATUS:
                    raise
                skipped += 1
                continue
            created += 1

        metrics.add_metric(name='DepartmentsSynced', unit=MetricUnit.Count, value=created)
        logger.info('Departments synced', extra={
            'department_count': len(records),
            'created_count': created,
            'skipped_count': skipped,
        })
        return DepartmentSyncResponse(departments=records, created=created, skipped=skipped)
