"""
Commercial API views: clients, leads and contacts.
"""
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.commercial.serializers import (
    ClientSerializer, ClientWriteSerializer, DeactivateClientSerializer,
    LeadSerializer, LeadWriteSerializer, LeadStatusSerializer, ConvertLeadSerializer,
    ContactSerializer, ContactWriteSerializer,
)
from apps.commercial.services import ClientService, LeadService, ContactService
from apps.core.permissions import requires_permission
from apps.core.views import CompanyAPIView, invalid_request

CLIENTS_MODULE = 'commercial.clients'
LEADS_MODULE = 'commercial.leads'
CONTACTS_MODULE = 'commercial.contacts'

SEARCH_PARAMS = [
    OpenApiParameter('search', OpenApiTypes.STR, OpenApiParameter.QUERY),
    OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
]


def _split_contact(validated_data):
    """Separate the contact operation from the entity fields."""
    data = dict(validated_data)
    return (
        data,
        data.pop('contact_id', None),
        data.pop('contact', None),
        data.pop('unlink_contact', False),
    )


def _flag(value):
    return None if value is None else value.lower() == 'true'


class ClientListView(CompanyAPIView):
    """
    GET  /v1/clients
    POST /v1/clients - with ``contact_id`` or an inline ``contact``
    """
    permission_module = CLIENTS_MODULE

    @extend_schema(
        tags=['Commercial - Clients'],
        parameters=SEARCH_PARAMS + [OpenApiParameter('is_active', OpenApiTypes.BOOL, OpenApiParameter.QUERY)],
        responses={200: ClientSerializer(many=True)}
    )
    def get(self, request):
        clients = ClientService.search_clients(
            request.tenant,
            search=request.query_params.get('search'),
            is_active=_flag(request.query_params.get('is_active')),
        )
        return self.paginate(request, clients, ClientSerializer)

    @extend_schema(tags=['Commercial - Clients'], request=ClientWriteSerializer, responses={201: ClientSerializer})
    def post(self, request):
        serializer = ClientWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data, contact_id, contact, _ = _split_contact(serializer.validated_data)
        client = ClientService.create_client(request.tenant, data, contact_id=contact_id, contact=contact)
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)


class ClientDetailView(CompanyAPIView):
    """GET/PUT /v1/clients/{id}"""
    permission_module = CLIENTS_MODULE

    @extend_schema(tags=['Commercial - Clients'], responses={200: ClientSerializer})
    def get(self, request, client_id):
        client = ClientService.get_client(request.tenant, client_id)
        return Response(ClientSerializer(client).data)

    @extend_schema(tags=['Commercial - Clients'], request=ClientWriteSerializer, responses={200: ClientSerializer})
    def put(self, request, client_id):
        serializer = ClientWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data, contact_id, contact, unlink = _split_contact(serializer.validated_data)
        client = ClientService.update_client(
            request.tenant, client_id, data,
            contact_id=contact_id, contact=contact, unlink_contact=unlink,
        )
        return Response(ClientSerializer(client).data)

    patch = put


class ClientDeactivateView(CompanyAPIView):
    """POST /v1/clients/{id}/deactivate"""

    @extend_schema(tags=['Commercial - Clients'], request=DeactivateClientSerializer,
                   responses={200: ClientSerializer})
    @requires_permission(CLIENTS_MODULE, 'update')
    def post(self, request, client_id):
        serializer = DeactivateClientSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        client = ClientService.deactivate_client(
            request.tenant, client_id, reason=serializer.validated_data.get('reason')
        )
        return Response(ClientSerializer(client).data)


class ClientReactivateView(CompanyAPIView):
    """POST /v1/clients/{id}/reactivate"""

    @extend_schema(tags=['Commercial - Clients'], request=None, responses={200: ClientSerializer})
    @requires_permission(CLIENTS_MODULE, 'update')
    def post(self, request, client_id):
        client = ClientService.reactivate_client(request.tenant, client_id)
        return Response(ClientSerializer(client).data)


class LeadListView(CompanyAPIView):
    """
    GET  /v1/leads
    POST /v1/leads
    """
    permission_module = LEADS_MODULE

    @extend_schema(
        tags=['Commercial - Leads'],
        parameters=SEARCH_PARAMS + [OpenApiParameter('status', OpenApiTypes.STR, OpenApiParameter.QUERY)],
        responses={200: LeadSerializer(many=True)}
    )
    def get(self, request):
        leads = LeadService.search_leads(
            request.tenant,
            search=request.query_params.get('search'),
            status=request.query_params.get('status'),
        )
        return self.paginate(request, leads, LeadSerializer)

    @extend_schema(tags=['Commercial - Leads'], request=LeadWriteSerializer, responses={201: LeadSerializer})
    def post(self, request):
        serializer = LeadWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data, contact_id, contact, _ = _split_contact(serializer.validated_data)
        lead = LeadService.create_lead(
            request.tenant, data, contact_id=contact_id, contact=contact, actor=request.user
        )
        return Response(LeadSerializer(lead).data, status=status.HTTP_201_CREATED)


class LeadDetailView(CompanyAPIView):
    """GET/PUT/DELETE /v1/leads/{id}"""
    permission_module = LEADS_MODULE

    @extend_schema(tags=['Commercial - Leads'], responses={200: LeadSerializer})
    def get(self, request, lead_id):
        lead = LeadService.get_lead(request.tenant, lead_id)
        return Response(LeadSerializer(lead).data)

    @extend_schema(tags=['Commercial - Leads'], request=LeadWriteSerializer, responses={200: LeadSerializer})
    def put(self, request, lead_id):
        serializer = LeadWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data, contact_id, contact, unlink = _split_contact(serializer.validated_data)
        lead = LeadService.update_lead(
            request.tenant, lead_id, data,
            contact_id=contact_id, contact=contact, unlink_contact=unlink,
        )
        return Response(LeadSerializer(lead).data)

    patch = put

    @extend_schema(tags=['Commercial - Leads'], responses={204: None})
    def delete(self, request, lead_id):
        LeadService.delete_lead(request.tenant, lead_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LeadStatusView(CompanyAPIView):
    """PUT /v1/leads/{id}/status"""
    permission_module = LEADS_MODULE

    @extend_schema(tags=['Commercial - Leads'], request=LeadStatusSerializer, responses={200: LeadSerializer})
    def put(self, request, lead_id):
        serializer = LeadStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        lead = LeadService.update_status(request.tenant, lead_id, serializer.validated_data['status'])
        return Response(LeadSerializer(lead).data)


class LeadConvertView(CompanyAPIView):
    """
    POST /v1/leads/{id}/convert

    Creates the client, moves the contact and marks the lead CONVERTED in
    one transaction.
    """

    @extend_schema(tags=['Commercial - Leads'], request=ConvertLeadSerializer, responses={201: ClientSerializer})
    @requires_permission(LEADS_MODULE, 'update')
    def post(self, request, lead_id):
        serializer = ConvertLeadSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        client = LeadService.convert_lead(request.tenant, lead_id, serializer.validated_data)
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)


class AvailableContactsView(CompanyAPIView):
    """GET /v1/leads/available-contacts - contacts not linked to a client or lead"""
    permission_module = LEADS_MODULE

    @extend_schema(tags=['Commercial - Leads'], responses={200: ContactSerializer(many=True)})
    def get(self, request):
        contacts = ContactService.available_contacts(request.tenant)
        return Response(ContactSerializer(contacts, many=True).data)


class ContactListView(CompanyAPIView):
    """
    GET  /v1/contacts
    POST /v1/contacts
    """
    permission_module = CONTACTS_MODULE

    @extend_schema(tags=['Commercial - Contacts'], parameters=SEARCH_PARAMS,
                   responses={200: ContactSerializer(many=True)})
    def get(self, request):
        contacts = ContactService.search_contacts(request.tenant, search=request.query_params.get('search'))
        return self.paginate(request, contacts, ContactSerializer)

    @extend_schema(tags=['Commercial - Contacts'], request=ContactWriteSerializer,
                   responses={201: ContactSerializer})
    def post(self, request):
        serializer = ContactWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        contact = ContactService.create_contact(request.tenant, serializer.validated_data)
        return Response(ContactSerializer(contact).data, status=status.HTTP_201_CREATED)


class ContactOptionsView(CompanyAPIView):
    """GET /v1/contacts/options - clients and open leads to link a contact to"""
    permission_module = CONTACTS_MODULE

    @extend_schema(tags=['Commercial - Contacts'], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response(ContactService.form_options(request.tenant))


class ContactDetailView(CompanyAPIView):
    """GET/PUT/DELETE /v1/contacts/{id}"""
    permission_module = CONTACTS_MODULE

    @extend_schema(tags=['Commercial - Contacts'], responses={200: ContactSerializer})
    def get(self, request, contact_id):
        contact = ContactService.get_contact(request.tenant, contact_id)
        return Response(ContactSerializer(contact).data)

    @extend_schema(tags=['Commercial - Contacts'], request=ContactWriteSerializer,
                   responses={200: ContactSerializer})
    def put(self, request, contact_id):
        serializer = ContactWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        contact = ContactService.update_contact(request.tenant, contact_id, serializer.validated_data)
        return Response(ContactSerializer(contact).data)

    patch = put

    @extend_schema(tags=['Commercial - Contacts'], responses={204: None})
    def delete(self, request, contact_id):
        ContactService.delete_contact(request.tenant, contact_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
