"""
RBAC API views.

Roles, members, permission overrides, invitations and the audit log of
the active company. Every endpoint is checked against the module/action
matrix of the calling member.
"""
import logging
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import requires_permission
from apps.core.views import CompanyAPIView, invalid_request
from apps.rbac.serializers import (
    RoleSerializer, RoleWriteSerializer, MemberSerializer, MemberDetailSerializer,
    MemberRoleSerializer, OverrideSerializer, OverrideRemoveSerializer,
    MemberPermissionSerializer, InvitationSerializer, InviteSerializer,
    AuditLogSerializer,
)
from apps.rbac.services import (
    RoleService, MemberService, InvitationService, AuditService,
)

logger = logging.getLogger(__name__)

USERS_MODULE = 'company.general.users'


class PermissionsMeView(CompanyAPIView):
    """
    GET /v1/permissions/me

    Effective permission map of the caller in the active company.
    """

    @extend_schema(tags=['RBAC - Permissions'], summary='My permissions', responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response(request.permissions.to_dict())


class RoleListView(CompanyAPIView):
    """
    GET  /v1/roles - list system and custom roles
    POST /v1/roles - create a custom role
    """
    permission_module = 'company.general.roles'

    @extend_schema(tags=['RBAC - Roles'], summary='List roles', responses={200: RoleSerializer(many=True)})
    def get(self, request):
        roles = RoleService.list_roles(request.tenant)
        return self.paginate(request, roles, RoleSerializer)

    @extend_schema(
        tags=['RBAC - Roles'],
        summary='Create custom role',
        request=RoleWriteSerializer,
        responses={201: RoleSerializer, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT}
    )
    def post(self, request):
        serializer = RoleWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        role = RoleService.create_role(
            request.tenant,
            serializer.validated_data,
            actor=request.user,
            request=request,
        )
        return Response(RoleSerializer(role).data, status=status.HTTP_201_CREATED)


class RoleDetailView(CompanyAPIView):
    """
    GET    /v1/roles/{id}
    PUT    /v1/roles/{id} - system roles keep name and description
    DELETE /v1/roles/{id} - refused for system roles and roles in use
    """
    permission_module = 'company.general.roles'

    @extend_schema(tags=['RBAC - Roles'], summary='Get role', responses={200: RoleSerializer})
    def get(self, request, role_id):
        role = RoleService.get_role(request.tenant, role_id)
        return Response(RoleSerializer(role).data)

    @extend_schema(tags=['RBAC - Roles'], summary='Update role', request=RoleWriteSerializer,
                   responses={200: RoleSerializer})
    def put(self, request, role_id):
        serializer = RoleWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        role = RoleService.update_role(
            request.tenant,
            role_id,
            serializer.validated_data,
            actor=request.user,
            request=request,
        )
        return Response(RoleSerializer(role).data)

    patch = put

    @extend_schema(tags=['RBAC - Roles'], summary='Delete role', responses={204: None})
    def delete(self, request, role_id):
        RoleService.delete_role(request.tenant, role_id, actor=request.user, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MemberListView(CompanyAPIView):
    """GET /v1/members"""
    permission_module = USERS_MODULE

    @extend_schema(
        tags=['RBAC - Members'],
        summary='List members',
        parameters=[
            OpenApiParameter('search', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('is_active', OpenApiTypes.BOOL, OpenApiParameter.QUERY),
        ],
        responses={200: MemberSerializer(many=True)}
    )
    def get(self, request):
        is_active = request.query_params.get('is_active')
        members = MemberService.list_members(
            request.tenant,
            is_active=None if is_active is None else is_active.lower() == 'true',
            search=request.query_params.get('search'),
        )
        return self.paginate(request, members, MemberSerializer)


class MemberDetailView(CompanyAPIView):
    """GET /v1/members/{id}"""
    permission_module = USERS_MODULE

    @extend_schema(tags=['RBAC - Members'], summary='Get member', responses={200: MemberDetailSerializer})
    def get(self, request, member_id):
        member = MemberService.get_member(request.tenant, member_id)
        return Response(MemberDetailSerializer(member).data)


class MemberRoleView(CompanyAPIView):
    """PUT /v1/members/{id}/role"""
    permission_module = USERS_MODULE

    @extend_schema(tags=['RBAC - Members'], summary='Change member role', request=MemberRoleSerializer,
                   responses={200: MemberSerializer})
    def put(self, request, member_id):
        serializer = MemberRoleSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        member = MemberService.update_member_role(
            request.tenant,
            member_id,
            serializer.validated_data['role_id'],
            actor=request.user,
            request=request,
        )
        return Response(MemberSerializer(member).data)


class MemberDeactivateView(CompanyAPIView):
    """POST /v1/members/{id}/deactivate"""

    @extend_schema(tags=['RBAC - Members'], summary='Deactivate member', request=None,
                   responses={200: MemberSerializer})
    @requires_permission(USERS_MODULE, 'update')
    def post(self, request, member_id):
        member = MemberService.deactivate_member(
            request.tenant, member_id, actor=request.user, request=request
        )
        return Response(MemberSerializer(member).data)


class MemberReactivateView(CompanyAPIView):
    """POST /v1/members/{id}/reactivate"""

    @extend_schema(tags=['RBAC - Members'], summary='Reactivate member', request=None,
                   responses={200: MemberSerializer})
    @requires_permission(USERS_MODULE, 'update')
    def post(self, request, member_id):
        member = MemberService.reactivate_member(
            request.tenant, member_id, actor=request.user, request=request
        )
        return Response(MemberSerializer(member).data)


class MemberOverridesView(CompanyAPIView):
    """
    GET    /v1/members/{id}/overrides - list overrides
    PUT    /v1/members/{id}/overrides - grant or revoke one pair
    DELETE /v1/members/{id}/overrides - remove an override
    """
    permission_module = USERS_MODULE

    @extend_schema(tags=['RBAC - Members'], summary='List overrides',
                   responses={200: MemberPermissionSerializer(many=True)})
    def get(self, request, member_id):
        member = MemberService.get_member(request.tenant, member_id)
        overrides = MemberService.list_overrides(member)
        return Response(MemberPermissionSerializer(overrides, many=True).data)

    @extend_schema(tags=['RBAC - Members'], summary='Set override', request=OverrideSerializer,
                   responses={200: MemberPermissionSerializer})
    def put(self, request, member_id):
        serializer = OverrideSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        override = MemberService.set_permission_override(
            request.tenant,
            member_id,
            actor=request.user,
            request=request,
            **serializer.validated_data,
        )
        return Response(MemberPermissionSerializer(override).data)

    @extend_schema(tags=['RBAC - Members'], summary='Remove override', request=OverrideRemoveSerializer,
                   responses={204: None})
    @requires_permission(USERS_MODULE, 'update')
    def delete(self, request, member_id):
        serializer = OverrideRemoveSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        MemberService.remove_permission_override(
            request.tenant,
            member_id,
            actor=request.user,
            request=request,
            **serializer.validated_data,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class InvitationListView(CompanyAPIView):
    """
    GET  /v1/invitations
    POST /v1/invitations - invite an email with a role
    """
    permission_module = USERS_MODULE

    @extend_schema(
        tags=['RBAC - Invitations'],
        summary='List invitations',
        parameters=[OpenApiParameter('status', OpenApiTypes.STR, OpenApiParameter.QUERY)],
        responses={200: InvitationSerializer(many=True)}
    )
    def get(self, request):
        invitations = InvitationService.list_invitations(
            request.tenant, status=request.query_params.get('status')
        )
        return self.paginate(request, invitations, InvitationSerializer)

    @extend_schema(tags=['RBAC - Invitations'], summary='Invite user', request=InviteSerializer,
                   responses={201: InvitationSerializer})
    def post(self, request):
        serializer = InviteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        invitation = InvitationService.invite_user(
            request.tenant,
            serializer.validated_data['email'],
            serializer.validated_data['role_id'],
            actor=request.user,
            request=request,
        )
        return Response(InvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


class InvitationDetailView(CompanyAPIView):
    """DELETE /v1/invitations/{id} - cancel a pending invitation"""
    permission_module = USERS_MODULE

    @extend_schema(tags=['RBAC - Invitations'], summary='Cancel invitation',
                   responses={200: InvitationSerializer})
    def delete(self, request, invitation_id):
        invitation = InvitationService.cancel_invitation(
            request.tenant, invitation_id, actor=request.user, request=request
        )
        return Response(InvitationSerializer(invitation).data)


class AuditLogListView(CompanyAPIView):
    """
    GET /v1/audit-logs

    Audit entries of the active company, newest first, 20 per page.
    """
    permission_module = 'company.general.audit'

    @extend_schema(
        tags=['RBAC - Audit'],
        summary='List audit logs',
        parameters=[
            OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
            OpenApiParameter('target_type', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('action', OpenApiTypes.STR, OpenApiParameter.QUERY),
        ],
        responses={200: OpenApiTypes.OBJECT}
    )
    def get(self, request):
        try:
            page = int(request.query_params.get('page', 1))
        except ValueError:
            page = 1

        result = AuditService.list_logs(
            request.tenant,
            page=page,
            target_type=request.query_params.get('target_type'),
            action=request.query_params.get('action'),
        )
        result['results'] = AuditLogSerializer(result['results'], many=True).data
        return Response(result)
