from typing import Dict, List

from loguru import logger
from mongoengine import NotUniqueError, ValidationError

from auth.utils import CurrentUser, is_authorized_for_company
from exceptions.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from models.company import Company
from services.bill_service import parse_object_id
from services.bill_store import store_call


class CompanyService:
    """
    Service for managing company records.

    Companies are created by admins and updated either by admins or by users of
    the company itself.
    """

    REQUIRED_FIELDS = ("name", "email", "contact_person_name", "contact_person_phone")

    def _get_company(self, company_id: str) -> Company:
        """Get company by ID with validation."""
        company_id = parse_object_id(company_id, "companyId")
        company = Company.objects(id=company_id).first()
        if not company:
            raise NotFoundError("Company not found")
        return company

    def _save(self, company: Company) -> Company:
        try:
            return company.save()
        except NotUniqueError:
            raise InvalidArgumentError("Company name or email already in use")
        except ValidationError as e:
            raise InvalidArgumentError(str(e))

    @store_call
    def get_all_companies(self) -> List[Company]:
        return list(Company.objects.order_by("name"))

    @store_call
    def create_company(self, payload: Dict) -> Company:
        missing = [
            field
            for field in self.REQUIRED_FIELDS
            if not isinstance(payload.get(field), str) or not payload.get(field).strip()
        ]
        if missing:
            raise InvalidArgumentError(f"Missing required fields: {', '.join(missing)}")

        name = payload["name"].strip()
        if Company.objects(name=name).first():
            raise InvalidArgumentError("Company name already in use")

        company = self._save(
            Company(
                name=name,
                address=payload.get("address"),
                image=payload.get("image"),
                email=payload["email"],
                contact_person_name=payload["contact_person_name"],
                contact_person_phone=payload["contact_person_phone"],
            )
        )
        logger.info(f"Created company {company.id} ({company.name})")
        return company

    @store_call
    def get_company(self, company_id: str) -> Company:
        return self._get_company(company_id)

    @store_call
    def get_my_company(self, user: CurrentUser) -> Company:
        if not user.company:
            raise NotFoundError("User or company not found")
        return self._get_company(user.company)

    @store_call
    def update_company(self, user: CurrentUser, company_id: str, payload: Dict) -> Company:
        if not is_authorized_for_company(user, company_id):
            raise ForbiddenError("Forbidden")
        company = self._get_company(company_id)
        return self._apply_update(company, payload)

    @store_call
    def update_my_company(self, user: CurrentUser, payload: Dict) -> Company:
        if not user.company:
            raise NotFoundError("User or company not found")
        company = self._get_company(user.company)
        return self._apply_update(company, payload)

    @store_call
    def delete_company(self, company_id: str) -> None:
        company = self._get_company(company_id)
        company.delete()
        logger.info(f"Deleted company {company_id}")

    def _apply_update(self, company: Company, payload: Dict) -> Company:
        updated = [key for key in Company.UPDATABLE_FIELDS if key in payload]
        for key in updated:
            setattr(company, Company.UPDATABLE_FIELDS[key], payload[key])
        company = self._save(company)
        logger.info(f"Updated company {company.id}: {', '.join(updated) or 'no fields'}")
        return company
