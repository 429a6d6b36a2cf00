"""
Tests for clients, leads, contacts and lead conversion.
"""
import pytest
from unittest import mock
from django.db import DatabaseError

from apps.commercial.models import Client, Contact, Lead
from apps.commercial.services import ClientService, ContactService, LeadService
from apps.core.exceptions import NotFoundError, PersistenceError, ValidationError


@pytest.fixture
def free_contact(company):
    return Contact.objects.create(company=company, first_name='Lucia', last_name='Gomez', email='lucia@example.com')


@pytest.fixture
def lead(company):
    lead = Lead.objects.create(
        company=company,
        name='Agro Pampa',
        tax_id='30-71234567-8',
        email='compras@agropampa.example',
        phone='11 4444 5555',
        address='Ruta 5 km 20',
    )
    Contact.objects.create(company=company, first_name='Mario', last_name='Diaz', lead=lead)
    return lead


@pytest.mark.django_db
class TestClientCreation:

    def test_create_with_existing_contact(self, company, free_contact):
        client = ClientService.create_client(company, {'name': 'Acme SA'}, contact_id=free_contact.id)

        free_contact.refresh_from_db()
        assert free_contact.client == client
        assert free_contact not in ContactService.available_contacts(company)

    def test_create_with_inline_contact(self, company):
        client = ClientService.create_client(
            company,
            {'name': 'Acme SA'},
            contact={'first_name': 'Ana', 'last_name': 'Ruiz', 'email': 'ana@acme.example'},
        )

        contact = Contact.objects.get(client=client)
        assert contact.company == company
        assert contact.first_name == 'Ana'

    def test_linked_contact_is_not_available(self, company, free_contact):
        ClientService.create_client(company, {'name': 'First'}, contact_id=free_contact.id)

        with pytest.raises(ValidationError):
            ClientService.create_client(company, {'name': 'Second'}, contact_id=free_contact.id)

        assert not Client.objects.filter(name='Second').exists()

    def test_contact_of_other_company_is_rejected(self, company, other_company):
        foreign = Contact.objects.create(company=other_company, first_name='X', last_name='Y')

        with pytest.raises(ValidationError):
            ClientService.create_client(company, {'name': 'Acme SA'}, contact_id=foreign.id)

    def test_name_is_required(self, company):
        with pytest.raises(ValidationError):
            ClientService.create_client(company, {'name': '  '})

    def test_update_replaces_contact(self, company, free_contact):
        client = ClientService.create_client(
            company, {'name': 'Acme SA'}, contact={'first_name': 'Ana', 'last_name': 'Ruiz'}
        )
        previous = Contact.objects.get(client=client)

        ClientService.update_client(company, client.id, {}, contact_id=free_contact.id)

        previous.refresh_from_db()
        assert previous.client is None
        assert Contact.objects.get(client=client) == free_contact

    def test_deactivate_and_reactivate(self, company):
        client = ClientService.create_client(company, {'name': 'Acme SA'})

        client = ClientService.deactivate_client(company, client.id, reason='Closed')
        assert not client.is_active
        assert client.termination_date is not None
        assert client.reason_for_termination == 'Closed'

        client = ClientService.reactivate_client(company, client.id)
        assert client.is_active
        assert client.termination_date is None


@pytest.mark.django_db
class TestLeadConversion:

    def test_convert_creates_client_and_moves_contact(self, company, lead):
        client = LeadService.convert_lead(company, lead.id, {'phone': '11 9999 0000'})

        lead.refresh_from_db()
        assert lead.status == Lead.STATUS_CONVERTED
        assert lead.converted_to_client == client
        assert lead.converted_at is not None

        assert client.name == 'Agro Pampa'
        assert client.tax_id == '30-71234567-8'
        assert client.phone == '11 9999 0000'
        assert client.email == 'compras@agropampa.example'

        contact = Contact.objects.get(client=client)
        assert contact.lead is None
        assert contact.first_name == 'Mario'

    def test_second_conversion_fails(self, company, lead):
        LeadService.convert_lead(company, lead.id)

        with pytest.raises(ValidationError):
            LeadService.convert_lead(company, lead.id)

        assert Client.objects.for_company(company).count() == 1

    def test_failure_rolls_everything_back(self, company, lead):
        with mock.patch.object(Lead, 'save', side_effect=DatabaseError('write failed')):
            with pytest.raises(PersistenceError):
                LeadService.convert_lead(company, lead.id)

        lead.refresh_from_db()
        assert lead.status == Lead.STATUS_NEW
        assert not Client.objects.for_company(company).exists()
        assert Contact.objects.get(lead=lead).client is None

    def test_unknown_lead(self, company, other_company):
        foreign = Lead.objects.create(company=other_company, name='Foreign')

        with pytest.raises(NotFoundError):
            LeadService.convert_lead(company, foreign.id)

    def test_status_cannot_be_set_to_converted(self, company, lead):
        with pytest.raises(ValidationError):
            LeadService.update_status(company, lead.id, Lead.STATUS_CONVERTED)

    def test_unknown_status(self, company, lead):
        with pytest.raises(ValidationError):
            LeadService.update_status(company, lead.id, 'WON')

    def test_delete_lead_is_soft(self, company, lead):
        LeadService.delete_lead(company, lead.id)

        assert lead not in LeadService.search_leads(company)
        assert Lead.objects.filter(id=lead.id, is_active=False).exists()


@pytest.mark.django_db
class TestContacts:

    def test_contact_links_to_client_or_lead_not_both(self, company, lead):
        client = ClientService.create_client(company, {'name': 'Acme SA'})

        with pytest.raises(ValidationError):
            ContactService.create_contact(company, {
                'first_name': 'Ana', 'last_name': 'Ruiz',
                'client_id': client.id, 'lead_id': lead.id,
            })

    def test_lead_already_has_contact(self, company, lead):
        with pytest.raises(ValidationError):
            ContactService.create_contact(company, {
                'first_name': 'Ana', 'last_name': 'Ruiz', 'lead_id': lead.id,
            })

    def test_deleted_lead_cannot_be_converted(self, company, lead):
        LeadService.delete_lead(company, lead.id)

        with pytest.raises(NotFoundError):
            LeadService.convert_lead(company, lead.id)

        lead.refresh_from_db()
        assert lead.status != Lead.STATUS_CONVERTED
        assert not Client.objects.for_company(company).exists()

    def test_form_options_exclude_converted_leads(self, company, lead):
        open_lead = Lead.objects.create(company=company, name='Open Lead')
        LeadService.convert_lead(company, lead.id)

        options = ContactService.form_options(company)

        assert [item['id'] for item in options['leads']] == [open_lead.id]
        assert [item['name'] for item in options['clients']] == ['Agro Pampa']


@pytest.mark.django_db
class TestCommercialAPI:

    def test_create_client_with_inline_contact(self, owner_client, company):
        response = owner_client.post('/v1/clients', {
            'name': 'Acme SA',
            'contact': {'first_name': 'Ana', 'last_name': 'Ruiz'},
        }, format='json')

        assert response.status_code == 201
        assert response.data['contact']['first_name'] == 'Ana'

    def test_contact_id_and_contact_are_exclusive(self, owner_client, company, free_contact):
        response = owner_client.post('/v1/clients', {
            'name': 'Acme SA',
            'contact_id': str(free_contact.id),
            'contact': {'first_name': 'Ana', 'last_name': 'Ruiz'},
        }, format='json')

        assert response.status_code == 400

    def test_convert_requires_lead_update(self, company, lead, make_member, auth_client):
        viewer = make_member(company, grants=[('commercial.leads', 'view')])
        editor = make_member(company, grants=[('commercial.leads', 'update')])

        assert auth_client(viewer.user).post(f'/v1/leads/{lead.id}/convert', {}, format='json').status_code == 403

        response = auth_client(editor.user).post(f'/v1/leads/{lead.id}/convert', {}, format='json')
        assert response.status_code == 201
        assert response.data['name'] == 'Agro Pampa'

    def test_clients_are_company_scoped(self, owner_client, company, other_company):
        Client.objects.create(company=other_company, name='Hidden')
        Client.objects.create(company=company, name='Visible')

        response = owner_client.get('/v1/clients')

        assert [item['name'] for item in response.data['results']] == ['Visible']
