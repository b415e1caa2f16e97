import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from portalconfig.api import success_response
from users.models import Client

from .lifecycle import status_table
from .models import Case
from .permissions import CanAccessAdminArea, is_admin
from .serializers import (
    AdminCaseDetailSerializer, AdminCaseUpdateSerializer, CaseCreateSerializer,
    CaseDetailSerializer, CaseListSerializer, CaseUpdateSerializer,
)
from .trademarks import CATEGORY_OPTIONS, NICE_CLASSES
from .utils import create_case

logger = logging.getLogger(__name__)

# sortBy query value -> model field
CLIENT_SORT_FIELDS = {
    'title': 'title',
    'status': 'status',
    'updatedAt': 'updated_at',
}

ADMIN_SORT_FIELDS = {
    'caseNumber': 'case_number',
    'title': 'title',
    'applicant': 'applicant',
    'status': 'status',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}


# --- HELPER FUNCTIONS FOR CASE LISTS ---
def filter_cases(queryset, params, search_fields):
    """
    Applies the status / trademarkType / q filters shared by the client and
    admin case lists. q is a case-insensitive substring match over search_fields.
    """
    status_filter = params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter)

    trademark_type = params.get('trademarkType')
    if trademark_type:
        queryset = queryset.filter(trademark_type=trademark_type)

    search_query = params.get('q', '').strip()
    if search_query:
        condition = Q()
        for field in search_fields:
            condition |= Q(**{f"{field}__icontains": search_query})
        queryset = queryset.filter(condition)

    return queryset


def sort_cases(queryset, params, sort_fields):
    field = sort_fields.get(params.get('sortBy'), 'updated_at')
    prefix = '' if params.get('sortOrder') == 'asc' else '-'
    return queryset.order_by(f"{prefix}{field}", f"{prefix}id")


def filter_by_classes(cases, params):
    """
    Keeps cases sharing at least one Nice class with the comma separated
    'classes' parameter. Done in Python because JSON containment lookups
    are not available on every backend.
    """
    class_filter = params.get('classes')
    if not class_filter:
        return list(cases)
    wanted = {code.strip() for code in class_filter.split(',') if code.strip()}
    return [case for case in cases if wanted.intersection(case.classes or [])]


def case_list_payload(cases):
    data = CaseListSerializer(cases, many=True).data
    return {'cases': data, 'total': len(data)}


def get_owned_case(request, case_id, denied_message):
    case = Case.objects.active().filter(pk=case_id).first()
    if case is None:
        raise NotFound("Case not found.")
    if case.user_id != request.user.pk:
        raise PermissionDenied(denied_message)
    return case


# --- View 1: Client case list / create ---
class CaseListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        cases = Case.objects.active().filter(user=request.user)
        cases = filter_cases(cases, request.query_params, ['case_number', 'title'])
        cases = sort_cases(cases, request.query_params, CLIENT_SORT_FIELDS)
        cases = filter_by_classes(cases, request.query_params)
        return success_response(case_list_payload(cases))

    def post(self, request):
        client = Client.objects.filter(user=request.user).first()
        if client is None:
            raise NotFound("No client profile is registered for this account.")

        serializer = CaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        case = create_case(client, **serializer.to_case_fields())
        logger.info("Case %s created by user %s", case.case_number, request.user.pk)

        return success_response(
            {'id': case.pk, 'caseNumber': case.case_number, 'title': case.title},
            message="Case created.",
            status_code=status.HTTP_201_CREATED,
        )


# --- View 2: Client case detail / update (owner only) ---
class CaseDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, case_id):
        case = get_owned_case(request, case_id, "You do not have permission to view this case.")
        return success_response(CaseDetailSerializer(case).data)

    def patch(self, request, case_id):
        case = get_owned_case(request, case_id, "You do not have permission to update this case.")

        serializer = CaseUpdateSerializer(case, data=request.data, partial=True)
        # Any invalid field, status included, rejects the whole update
        serializer.is_valid(raise_exception=True)
        case = serializer.save()

        return success_response(
            {
                'id': case.pk,
                'caseNumber': case.case_number,
                'title': case.title,
                'status': case.status,
                'statusLabel': case.status_label,
                'consultationRoute': case.consultation_route,
            },
            message="Case updated.",
        )


# --- View 3: Admin case list ---
class AdminCaseListView(APIView):
    permission_classes = [IsAuthenticated, CanAccessAdminArea]

    def get(self, request):
        cases = Case.objects.active().select_related('user')
        cases = filter_cases(cases, request.query_params, ['case_number', 'title', 'applicant'])
        cases = sort_cases(cases, request.query_params, ADMIN_SORT_FIELDS)
        cases = filter_by_classes(cases, request.query_params)
        return success_response(case_list_payload(cases))


# --- View 4: Admin case detail / update / soft delete ---
class AdminCaseDetailView(APIView):
    permission_classes = [IsAuthenticated, CanAccessAdminArea]

    def get_case(self, case_id):
        case = Case.objects.active().filter(pk=case_id).first()
        if case is None:
            raise NotFound("Case not found.")
        return case

    def get(self, request, case_id):
        return success_response(AdminCaseDetailSerializer(self.get_case(case_id)).data)

    def patch(self, request, case_id):
        case = self.get_case(case_id)
        serializer = AdminCaseUpdateSerializer(case, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            case = serializer.save()
        logger.info("Case %s updated by staff user %s: %s", case.case_number, request.user.pk, sorted(request.data))
        return success_response(AdminCaseDetailSerializer(case).data, message="Case updated.")

    def delete(self, request, case_id):
        if not is_admin(request.user.role):
            raise PermissionDenied("Only administrators can delete cases.")
        case = self.get_case(case_id)
        case.soft_delete()
        logger.info("Case %s soft-deleted by user %s", case.case_number, request.user.pk)
        return success_response({'id': case.pk}, message="Case deleted.")


# --- View 5: Reference data ---
class CaseStatusListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success_response(status_table())


class TrademarkClassListView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return success_response({
            'classes': [{'code': code, 'description': description} for code, description in NICE_CLASSES],
            'categories': list(CATEGORY_OPTIONS),
        })
