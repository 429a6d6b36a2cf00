"""
Commercial services: clients, leads and contacts.

Every operation receives the active company explicitly and only ever
touches rows of that company.
"""
import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.commercial.models import Client, Contact, Lead
from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.persistence import persistence_errors

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('first_name', 'last_name', 'email', 'phone', 'position', 'notes')
CLIENT_FIELDS = ('name', 'tax_id', 'email', 'phone', 'address')
LEAD_FIELDS = ('name', 'tax_id', 'email', 'phone', 'address', 'notes')


def _apply(instance, data: Dict[str, Any], fields):
    for field in fields:
        if field in data:
            value = data[field]
            setattr(instance, field, '' if value is None else value)


class ContactService:
    """Contacts of the company, linked to at most one client or lead."""

    @staticmethod
    def search_contacts(company, search: Optional[str] = None):
        queryset = Contact.objects.for_company(company).filter(is_active=True).select_related('client', 'lead')
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
                | Q(client__name__icontains=search)
                | Q(lead__name__icontains=search)
            )
        return queryset.order_by('last_name', 'first_name')

    @staticmethod
    def get_contact(company, contact_id) -> Contact:
        try:
            return Contact.objects.for_company(company).select_related('client', 'lead').get(id=contact_id)
        except (Contact.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Contact not found', {'contact_id': str(contact_id)})

    @staticmethod
    def available_contacts(company):
        """Active contacts not linked to any client or lead."""
        return (
            Contact.objects.for_company(company)
            .filter(is_active=True, client__isnull=True, lead__isnull=True)
            .order_by('last_name', 'first_name')
        )

    @classmethod
    def get_available_contact(cls, company, contact_id) -> Contact:
        """
        Raises:
            ValidationError: the contact does not exist in the company or is
                already linked
        """
        contact = cls.available_contacts(company).filter(id=contact_id).first()
        if contact is None:
            raise ValidationError('Contact is not available', {'contact_id': str(contact_id)})
        return contact

    @staticmethod
    def _link_targets(company, data: Dict[str, Any], contact: Optional[Contact] = None):
        """Resolve client_id / lead_id from input into instances of this company."""
        client = lead = None
        if data.get('client_id'):
            client = Client.objects.for_company(company).filter(id=data['client_id']).first()
            if client is None:
                raise ValidationError('Client not found', {'client_id': str(data['client_id'])})
            taken = Contact.objects.filter(client=client)
            if contact is not None:
                taken = taken.exclude(id=contact.id)
            if taken.exists():
                raise ValidationError('Client already has a contact', {'client_id': str(client.id)})
        if data.get('lead_id'):
            lead = Lead.objects.for_company(company).filter(id=data['lead_id']).first()
            if lead is None:
                raise ValidationError('Lead not found', {'lead_id': str(data['lead_id'])})
            taken = Contact.objects.filter(lead=lead)
            if contact is not None:
                taken = taken.exclude(id=contact.id)
            if taken.exists():
                raise ValidationError('Lead already has a contact', {'lead_id': str(lead.id)})
        if client is not None and lead is not None:
            raise ValidationError('A contact is linked to a client or a lead, not both')
        return client, lead

    @classmethod
    def create_contact(cls, company, data: Dict[str, Any]) -> Contact:
        client, lead = cls._link_targets(company, data)
        contact = Contact(company=company, client=client, lead=lead)
        _apply(contact, data, CONTACT_FIELDS)

        with persistence_errors('create contact', company_id=str(company.id), input=data):
            contact.save()
        return contact

    @classmethod
    def update_contact(cls, company, contact_id, data: Dict[str, Any]) -> Contact:
        contact = cls.get_contact(company, contact_id)
        _apply(contact, data, CONTACT_FIELDS)

        if 'client_id' in data or 'lead_id' in data:
            contact.client, contact.lead = cls._link_targets(company, data, contact=contact)

        with persistence_errors('update contact', contact_id=str(contact.id), input=data):
            contact.save()
        return contact

    @classmethod
    def delete_contact(cls, company, contact_id) -> Contact:
        """Deactivate the contact; the row is kept."""
        contact = cls.get_contact(company, contact_id)
        contact.is_active = False
        contact.save(update_fields=['is_active', 'updated_at'])
        return contact

    @staticmethod
    def form_options(company) -> Dict[str, Any]:
        """Clients and open leads a contact can be linked to."""
        return {
            'clients': list(
                Client.objects.for_company(company).active().order_by('name').values('id', 'name')
            ),
            'leads': list(
                Lead.objects.for_company(company)
                .filter(is_active=True)
                .exclude(status__in=[Lead.STATUS_CONVERTED, Lead.STATUS_LOST])
                .order_by('name')
                .values('id', 'name')
            ),
        }


def _link_contact(company, owner_field: str, owner, contact_id=None, contact_data=None,
                  unlink: bool = False):
    """
    Apply the contact operation of a client or lead write.

    ``unlink`` detaches the current contact. ``contact_id`` replaces the
    current contact with an available one. ``contact_data`` updates the
    current contact in place, or creates one when there is none.
    """
    current = Contact.objects.filter(**{owner_field: owner}).first()

    if unlink:
        if current is not None:
            setattr(current, owner_field, None)
            current.save()
        return None

    if contact_id:
        if current is not None and str(current.id) == str(contact_id):
            return current
        contact = ContactService.get_available_contact(company, contact_id)
        if current is not None:
            setattr(current, owner_field, None)
            current.save()
        setattr(contact, owner_field, owner)
        contact.save()
        return contact

    if contact_data:
        if current is None:
            current = Contact(company=company, **{owner_field: owner})
        _apply(current, contact_data, CONTACT_FIELDS)
        current.save()
        return current

    return current


class ClientService:
    """Client management."""

    @staticmethod
    def search_clients(company, search: Optional[str] = None, is_active: Optional[bool] = None):
        queryset = Client.objects.for_company(company).select_related('contact')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(tax_id__icontains=search)
                | Q(email__icontains=search)
            )
        return queryset.order_by('name')

    @staticmethod
    def get_client(company, client_id) -> Client:
        try:
            return Client.objects.for_company(company).get(id=client_id)
        except (Client.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Client not found', {'client_id': str(client_id)})

    @classmethod
    def create_client(cls, company, data: Dict[str, Any], contact_id=None,
                      contact: Optional[Dict[str, Any]] = None) -> Client:
        """
        Create a client and optionally its contact.

        With ``contact_id`` an available contact of the company is linked;
        with ``contact`` a new contact is created in the same company.
        """
        if not (data.get('name') or '').strip():
            raise ValidationError('Client name is required')

        with persistence_errors('create client', company_id=str(company.id), input=data):
            with transaction.atomic():
                client = Client(company=company)
                _apply(client, data, CLIENT_FIELDS)
                client.save()
                _link_contact(company, 'client', client, contact_id=contact_id, contact_data=contact)

        logger.info("Client created", extra={'company_id': str(company.id), 'client_id': str(client.id)})
        return client

    @classmethod
    def update_client(cls, company, client_id, data: Dict[str, Any], contact_id=None,
                      contact: Optional[Dict[str, Any]] = None, unlink_contact: bool = False) -> Client:
        client = cls.get_client(company, client_id)

        with persistence_errors('update client', client_id=str(client.id), input=data):
            with transaction.atomic():
                _apply(client, data, CLIENT_FIELDS)
                client.save()
                _link_contact(
                    company, 'client', client,
                    contact_id=contact_id, contact_data=contact, unlink=unlink_contact,
                )
        return client

    @classmethod
    def deactivate_client(cls, company, client_id, reason: Optional[str] = None) -> Client:
        client = cls.get_client(company, client_id)
        client.is_active = False
        client.termination_date = timezone.localdate()
        client.reason_for_termination = reason or ''
        client.save(update_fields=['is_active', 'termination_date', 'reason_for_termination', 'updated_at'])
        return client

    @classmethod
    def reactivate_client(cls, company, client_id) -> Client:
        client = cls.get_client(company, client_id)
        client.is_active = True
        client.termination_date = None
        client.reason_for_termination = ''
        client.save(update_fields=['is_active', 'termination_date', 'reason_for_termination', 'updated_at'])
        return client


class LeadService:
    """Lead pipeline management and conversion into clients."""

    @staticmethod
    def search_leads(company, search: Optional[str] = None, status: Optional[str] = None):
        queryset = Lead.objects.for_company(company).filter(is_active=True).select_related('contact')
        if status:
            queryset = queryset.filter(status=status)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(tax_id__icontains=search)
                | Q(email__icontains=search)
            )
        return queryset.order_by('-created_at')

    @staticmethod
    def get_lead(company, lead_id) -> Lead:
        try:
            return Lead.objects.for_company(company).get(id=lead_id)
        except (Lead.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Lead not found', {'lead_id': str(lead_id)})

    @staticmethod
    def _check_status(status: str):
        if status not in dict(Lead.STATUS_CHOICES):
            raise ValidationError(f"Unknown lead status '{status}'", {'status': status})
        if status == Lead.STATUS_CONVERTED:
            raise ValidationError('Leads are converted through the conversion endpoint', {'status': status})

    @classmethod
    def create_lead(cls, company, data: Dict[str, Any], contact_id=None,
                    contact: Optional[Dict[str, Any]] = None, actor=None) -> Lead:
        if not (data.get('name') or '').strip():
            raise ValidationError('Lead name is required')
        if data.get('status'):
            cls._check_status(data['status'])

        with persistence_errors('create lead', company_id=str(company.id), input=data):
            with transaction.atomic():
                lead = Lead(
                    company=company,
                    status=data.get('status') or Lead.STATUS_NEW,
                    created_by=actor if getattr(actor, 'is_authenticated', False) else None,
                )
                _apply(lead, data, LEAD_FIELDS)
                lead.save()
                _link_contact(company, 'lead', lead, contact_id=contact_id, contact_data=contact)
        return lead

    @classmethod
    def update_lead(cls, company, lead_id, data: Dict[str, Any], contact_id=None,
                    contact: Optional[Dict[str, Any]] = None, unlink_contact: bool = False) -> Lead:
        lead = cls.get_lead(company, lead_id)
        if data.get('status') and data['status'] != lead.status:
            cls._check_status(data['status'])
            lead.status = data['status']

        with persistence_errors('update lead', lead_id=str(lead.id), input=data):
            with transaction.atomic():
                _apply(lead, data, LEAD_FIELDS)
                lead.save()
                _link_contact(
                    company, 'lead', lead,
                    contact_id=contact_id, contact_data=contact, unlink=unlink_contact,
                )
        return lead

    @classmethod
    def update_status(cls, company, lead_id, status: str) -> Lead:
        lead = cls.get_lead(company, lead_id)
        cls._check_status(status)
        lead.status = status
        lead.save(update_fields=['status', 'updated_at'])
        return lead

    @classmethod
    def convert_lead(cls, company, lead_id, data: Optional[Dict[str, Any]] = None) -> Client:
        """
        Convert a lead into a client.

        In one transaction: the client is created from the lead's data
        (``email``, ``phone`` and ``address`` in ``data`` take precedence),
        the lead's contact moves to the client, and the lead is marked
        CONVERTED with a link to the client.

        Raises:
            NotFoundError: unknown or deleted lead
            ValidationError: the lead was already converted
        """
        data = data or {}
        if not cls.get_lead(company, lead_id).is_active:
            raise NotFoundError('Lead not found', {'lead_id': str(lead_id)})

        with persistence_errors('convert lead', lead_id=str(lead_id), input=data):
            with transaction.atomic():
                lead = Lead.objects.select_for_update().get(id=lead_id, company=company)
                if lead.status == Lead.STATUS_CONVERTED:
                    raise ValidationError('This lead was already converted', {'lead_id': str(lead.id)})

                client = Client.objects.create(
                    company=company,
                    name=lead.name,
                    tax_id=lead.tax_id,
                    email=data.get('email') or lead.email,
                    phone=data.get('phone') or lead.phone,
                    address=data.get('address') or lead.address,
                )

                Contact.objects.filter(lead=lead).update(lead=None, client=client)

                lead.status = Lead.STATUS_CONVERTED
                lead.converted_at = timezone.now()
                lead.converted_to_client = client
                lead.save(update_fields=['status', 'converted_at', 'converted_to_client', 'updated_at'])

        logger.info(
            "Lead converted to client",
            extra={'company_id': str(company.id), 'lead_id': str(lead.id), 'client_id': str(client.id)}
        )
        return client

    @classmethod
    def delete_lead(cls, company, lead_id) -> Lead:
        """Deactivate the lead; the row is kept."""
        lead = cls.get_lead(company, lead_id)
        lead.is_active = False
        lead.save(update_fields=['is_active', 'updated_at'])
        return lead
