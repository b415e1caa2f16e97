from rest_framework import serializers

from users.models import Attorney, InternalStaff

from .lifecycle import is_valid_status
from .models import Case
from .trademarks import NICE_CLASS_CODES, normalize_class_selections, normalize_consultation_route


def validate_route(value):
    # Blank means no route chosen yet
    if not value:
        return None
    route = normalize_consultation_route(value)
    if route is None:
        raise serializers.ValidationError("Invalid consultation route.")
    return route


def validate_case_status(value):
    if not is_valid_status(value):
        raise serializers.ValidationError("Invalid status.")
    return value


class CaseListSerializer(serializers.ModelSerializer):
    caseNumber = serializers.ReadOnlyField(source='case_number')
    trademarkType = serializers.ReadOnlyField(source='trademark_type')
    statusLabel = serializers.ReadOnlyField(source='status_label')
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Case
        fields = [
            'id',
            'caseNumber',
            'title',
            'trademarkType',
            'status',
            'statusLabel',
            'classes',
            'applicant',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields


class CaseDetailSerializer(serializers.ModelSerializer):
    """What the owning client sees of a case."""
    caseNumber = serializers.ReadOnlyField(source='case_number')
    trademarkType = serializers.ReadOnlyField(source='trademark_type')
    consultationRoute = serializers.ReadOnlyField(source='consultation_route')
    statusLabel = serializers.ReadOnlyField(source='status_label')
    progress = serializers.ReadOnlyField()

    class Meta:
        model = Case
        fields = [
            'id',
            'caseNumber',
            'title',
            'status',
            'statusLabel',
            'progress',
            'trademarkType',
            'applicant',
            'classes',
            'consultationRoute',
        ]
        read_only_fields = fields


class AdminCaseDetailSerializer(CaseDetailSerializer):
    trademarkDetails = serializers.ReadOnlyField(source='trademark_details')
    classSelections = serializers.ReadOnlyField(source='class_selections')
    classCategory = serializers.ReadOnlyField(source='class_category')
    productService = serializers.ReadOnlyField(source='product_service')
    clientIntake = serializers.ReadOnlyField(source='client_intake')
    consultationStarted = serializers.ReadOnlyField(source='consultation_started')
    userId = serializers.ReadOnlyField(source='user_id')
    assignedAttorneyId = serializers.ReadOnlyField(source='assigned_attorney_id')
    assignedInternalStaffId = serializers.ReadOnlyField(source='assigned_internal_staff_id')
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta(CaseDetailSerializer.Meta):
        fields = CaseDetailSerializer.Meta.fields + [
            'trademarkDetails',
            'classSelections',
            'classCategory',
            'productService',
            'clientIntake',
            'consultationStarted',
            'notes',
            'userId',
            'assignedAttorneyId',
            'assignedInternalStaffId',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields


class ClassSelectionSerializer(serializers.Serializer):
    classCode = serializers.CharField()
    details = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False, default=list)


class CaseCreateSerializer(serializers.Serializer):
    """Input of the new-case wizard. The case itself is built by cases.utils.create_case."""
    title = serializers.CharField(max_length=255)
    trademarkType = serializers.ChoiceField(choices=Case.TRADEMARK_TYPES)
    applicant = serializers.CharField(max_length=255)
    classes = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    trademarkDetails = serializers.DictField(required=False, default=dict)
    classSelections = ClassSelectionSerializer(many=True, required=False, allow_null=True)
    classCategory = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    productService = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    consultationRoute = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_classes(self, value):
        unknown = [code for code in value if code not in NICE_CLASS_CODES]
        if unknown:
            raise serializers.ValidationError(f"Unknown class code(s): {', '.join(unknown)}.")
        return value

    def validate_consultationRoute(self, value):
        return validate_route(value)

    def to_case_fields(self):
        data = self.validated_data
        selections = data.get('classSelections')
        return {
            'title': data['title'],
            'trademark_type': data['trademarkType'],
            'applicant': data['applicant'],
            'classes': data['classes'],
            'trademark_details': data.get('trademarkDetails') or {},
            'class_selections': normalize_class_selections(selections) if selections else None,
            'class_category': data.get('classCategory') or None,
            'product_service': data.get('productService') or None,
            'consultation_route': data.get('consultationRoute'),
            'consultation_started': False,
        }


class CaseUpdateSerializer(serializers.ModelSerializer):
    """
    Fields the owning client may change. Validation runs over the whole
    payload before anything is saved, so one bad field rejects the request.
    """
    clientIntake = serializers.JSONField(source='client_intake', required=False, allow_null=True)
    consultationRoute = serializers.CharField(
        source='consultation_route', required=False, allow_blank=True, allow_null=True
    )
    status = serializers.CharField(required=False)

    class Meta:
        model = Case
        fields = ['applicant', 'clientIntake', 'consultationRoute', 'status']

    def validate_consultationRoute(self, value):
        return validate_route(value)

    def validate_status(self, value):
        return validate_case_status(value)


class AdminCaseUpdateSerializer(serializers.ModelSerializer):
    """Fields staff change from the admin case screen, assignments included."""
    status = serializers.CharField(required=False)
    consultationStarted = serializers.BooleanField(source='consultation_started', required=False)
    assignedAttorneyId = serializers.PrimaryKeyRelatedField(
        source='assigned_attorney', queryset=Attorney.objects.all(), required=False, allow_null=True
    )
    assignedInternalStaffId = serializers.PrimaryKeyRelatedField(
        source='assigned_internal_staff', queryset=InternalStaff.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Case
        fields = ['status', 'notes', 'consultationStarted', 'assignedAttorneyId', 'assignedInternalStaffId']

    def validate_status(self, value):
        return validate_case_status(value)
