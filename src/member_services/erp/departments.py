"""Client service: organisation level lookups."""

from member_services.erp import endpoints
from member_services.erp.models import Department
from member_services.erp.parser import result_items


class ClientService:
    def __init__(self, session):
        self.session = session

    def get_department_list(self) -> list[Department]:
        result = self.session.call(endpoints.CLIENT.operation('GetDepartmentList'))
        return [Department.from_element(element) for element in result_items(result, 'Department')]
