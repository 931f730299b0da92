from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.decorators import api_view, permission_classes
from django.http import Http404
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiTypes
import logging

from apps.services import auth_service
from apps.services.auth_service import AuthServiceError
from . import firebase_service
from .firebase_service import FirebaseServiceError, FirebaseUnavailable
from .geocode_service import reverse_geocode
from .serializers import (
    SignInSerializer,
    SignUpSerializer,
    EmailSerializer,
    ParentProfileSerializer,
    ChildSummarySerializer,
    AppSerializer,
    ContentFiltersSerializer,
    LocationSerializer,
    ChildNameSerializer,
    BlockedAppUpdateSerializer,
    ContentFilterToggleSerializer,
    DeviceLockSerializer,
    AppDeletedSerializer,
    LocationHistoryQuerySerializer,
)
from .snapshots import (
    apps_as_list,
    blocked_apps,
    children_for_parent,
    content_filters_of,
    dashboard_summary,
    is_filter_active,
    location_history,
    location_of,
    merge_content_filters,
    search_apps,
    search_children,
)
from .status_utils import now_ms

logger = logging.getLogger(__name__)


def service_error_response(e):
    if isinstance(e, FirebaseUnavailable):
        return Response({'error': 'Database service is not configured.'},
                        status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({'error': 'Database request failed. Please try again.'},
                    status=status.HTTP_502_BAD_GATEWAY)


def auth_error_response(e, status_code=status.HTTP_400_BAD_REQUEST):
    return Response({'error': e.message, 'code': e.code}, status=status_code)


# ====== HEALTH CHECK VIEWS ======
@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    """Simple health check endpoint"""
    return Response({
        "status": "ok",
        "service": "AegistNet API",
        "version": "1.0.0",
        "firebase_configured": firebase_service.firebase_app is not None,
    })


# ====== AUTHENTICATION VIEWS ======
class SignInView(APIView):
    """Signs a parent in with email and password and returns a Firebase ID token."""
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="Sign In", request=SignInSerializer, responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 401: OpenApiTypes.OBJECT})
    def post(self, request, *args, **kwargs):
        serializer = SignInSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            result = auth_service.sign_in(**serializer.validated_data)
        except AuthServiceError as e:
            return auth_error_response(e, status.HTTP_401_UNAUTHORIZED)
        return Response(result, status=status.HTTP_200_OK)


class SignUpView(APIView):
    """
    Registers a new parent account, writes the parent profile and sends the
    verification email.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="Register New Parent", request=SignUpSerializer, responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT})
    def post(self, request, *args, **kwargs):
        serializer = SignUpSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        try:
            result = auth_service.sign_up(data['email'], data['password'], data.get('name', ''))
        except AuthServiceError as e:
            return auth_error_response(e)
        except FirebaseServiceError as e:
            return service_error_response(e)

        if result['verification_sent']:
            message = 'Verification email sent. Please check your inbox.'
        else:
            message = 'Account created. Verification email could not be sent automatically.'
        return Response({
            'message': message,
            'uid': result['uid'],
            'verification_sent': result['verification_sent'],
        }, status=status.HTTP_201_CREATED)


class PasswordResetView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="Send Password Reset Email", request=EmailSerializer, responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT})
    def post(self, request, *args, **kwargs):
        serializer = EmailSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            auth_service.send_password_reset(serializer.validated_data['email'])
        except AuthServiceError as e:
            return auth_error_response(e)
        except FirebaseServiceError as e:
            return service_error_response(e)
        except OSError as e:
            logger.error(f"Could not send password reset email: {e}")
            return Response({'error': 'Failed to send password reset email'},
                            status=status.HTTP_502_BAD_GATEWAY)
        return Response({'message': 'Password reset email sent. Check your inbox.'})


class ResendVerificationView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="Resend Verification Email", request=EmailSerializer, responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT})
    def post(self, request, *args, **kwargs):
        serializer = EmailSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            auth_service.send_email_verification(serializer.validated_data['email'])
        except AuthServiceError as e:
            return auth_error_response(e)
        except FirebaseServiceError as e:
            return service_error_response(e)
        except OSError as e:
            logger.error(f"Could not send verification email: {e}")
            return Response({'error': 'Failed to resend verification email'},
                            status=status.HTTP_502_BAD_GATEWAY)
        return Response({'message': 'Verification email resent. Please check your inbox.'})


class CurrentParentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current Parent Profile", responses={200: ParentProfileSerializer})
    def get(self, request, *args, **kwargs):
        user = request.user
        try:
            profile = firebase_service.get_parent_profile(user.uid)
        except FirebaseServiceError as e:
            return service_error_response(e)
        if not profile:
            # Accounts created outside the dashboard have no profile record yet.
            profile = {'uid': user.uid, 'email': user.email, 'name': user.name, 'role': 'parent'}
        return Response(ParentProfileSerializer(profile).data)


# ====== DASHBOARD & CHILDREN ======
class ParentChildrenMixin:
    """Resolves children scoped to the authenticated parent's email."""

    def get_children(self):
        snapshot = firebase_service.get_children_snapshot()
        return children_for_parent(snapshot, self.request.user.email)

    def get_child(self, child_id):
        record = firebase_service.get_child(child_id)
        if not isinstance(record, dict) or record.get('parentEmail') != self.request.user.email:
            raise Http404("Child not found.")
        return {'id': child_id, **record}


class DashboardView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Dashboard Summary", responses={200: OpenApiTypes.OBJECT})
    def get(self, request, *args, **kwargs):
        try:
            children = self.get_children()
        except FirebaseServiceError as e:
            return service_error_response(e)
        now = now_ms()
        summary = dashboard_summary(children, now=now)
        summary['children'] = ChildSummarySerializer(children, many=True, context={'now': now}).data
        return Response(summary)


class ChildListView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List Children",
        parameters=[
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             required=False, description='Filter by child name or email'),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request, *args, **kwargs):
        try:
            children = self.get_children()
        except FirebaseServiceError as e:
            return service_error_response(e)
        filtered = search_children(children, request.query_params.get('search'))
        return Response({
            'count': len(filtered),
            'total': len(children),
            'results': ChildSummarySerializer(filtered, many=True, context={'now': now_ms()}).data,
        })


class ChildDetailView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    def _detail(self, child):
        apps = apps_as_list(child.get('apps'))
        filters = content_filters_of(child)
        data = dict(ChildSummarySerializer(child, context={'now': now_ms()}).data)
        location = location_of(child)
        data.update({
            'apps_count': len(apps),
            'blocked_apps_count': len(blocked_apps(apps)),
            'contentFilters': ContentFiltersSerializer(filters).data,
            'filter_active': is_filter_active(filters),
            'location': LocationSerializer(location).data if location else None,
        })
        return data

    @extend_schema(summary="Retrieve Child", responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT})
    def get(self, request, child_id, *args, **kwargs):
        try:
            child = self.get_child(child_id)
        except FirebaseServiceError as e:
            return service_error_response(e)
        return Response(self._detail(child))

    @extend_schema(summary="Rename Child", request=ChildNameSerializer, responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT})
    def patch(self, request, child_id, *args, **kwargs):
        serializer = ChildNameSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        name = serializer.validated_data['name']
        try:
            child = self.get_child(child_id)
            firebase_service.update_child_name(child_id, name)
        except FirebaseServiceError as e:
            return service_error_response(e)
        child['name'] = name
        return Response({'message': 'Child name updated', 'child': self._detail(child)})


# ====== APPS ======
class ChildAppsView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List Child Apps",
        parameters=[
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             required=False, description='Filter by app name or package name'),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request, child_id, *args, **kwargs):
        try:
            child = self.get_child(child_id)
        except FirebaseServiceError as e:
            return service_error_response(e)
        apps = search_apps(apps_as_list(child.get('apps')), request.query_params.get('search'))
        return Response({
            'child_id': child_id,
            'count': len(apps),
            'blocked_count': len(blocked_apps(apps)),
            'results': AppSerializer(apps, many=True).data,
        })


class ChildAppBlockView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Block or Unblock App", request=BlockedAppUpdateSerializer, responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT})
    def patch(self, request, child_id, app_id, *args, **kwargs):
        serializer = BlockedAppUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        blocked = serializer.validated_data['blocked']
        try:
            child = self.get_child(child_id)
            app = next((a for a in apps_as_list(child.get('apps')) if a['appId'] == str(app_id)), None)
            if app is None:
                raise Http404("App not found.")
            values = firebase_service.update_blocked_app(child_id, app['appId'], blocked)
        except FirebaseServiceError as e:
            return service_error_response(e)
        app.update(values)
        return Response({
            'message': 'App blocked successfully' if blocked else 'App unblocked successfully',
            'app': AppSerializer(app).data,
        })


class UnblockAllAppsView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Unblock All Apps", request=None, responses={200: OpenApiTypes.OBJECT})
    def post(self, request, child_id, *args, **kwargs):
        try:
            child = self.get_child(child_id)
            count = firebase_service.unblock_all_apps(child_id, apps_as_list(child.get('apps')))
        except FirebaseServiceError as e:
            return service_error_response(e)
        return Response({'message': f'Unblocked {count} app(s)', 'unblocked_count': count})


# ====== CONTENT FILTERS ======
class ContentFiltersView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get Content Filters", responses={200: OpenApiTypes.OBJECT})
    def get(self, request, child_id, *args, **kwargs):
        try:
            child = self.get_child(child_id)
        except FirebaseServiceError as e:
            return service_error_response(e)
        filters = content_filters_of(child)
        return Response({
            'child_id': child_id,
            'contentFilters': ContentFiltersSerializer(filters).data,
            'active': is_filter_active(filters),
        })

    @extend_schema(summary="Toggle Content Filter", request=ContentFilterToggleSerializer, responses={200: OpenApiTypes.OBJECT})
    def put(self, request, child_id, *args, **kwargs):
        serializer = ContentFilterToggleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        enabled = serializer.validated_data['enabled']
        apply_to_all = serializer.validated_data['apply_to_all']

        try:
            child = self.get_child(child_id)
            targets = self.get_children() if apply_to_all else [child]
        except FirebaseServiceError as e:
            return service_error_response(e)

        updated = 0
        for target in targets:
            merged = merge_content_filters(target.get('contentFilters'), enabled)
            try:
                firebase_service.update_content_filters(target['id'], merged)
                updated += 1
            except FirebaseServiceError as e:
                logger.warning(f"Could not update filters for child {target['id']}: {e}")

        if updated == 0:
            return Response({'error': 'Filter settings could not be updated. Please try again.'},
                            status=status.HTTP_502_BAD_GATEWAY)

        if apply_to_all:
            message = f'Filter updated for {updated} child(ren)'
        else:
            message = 'Filter settings updated successfully'
        filters = merge_content_filters(content_filters_of(child), enabled)
        return Response({
            'message': message,
            'updated_count': updated,
            'contentFilters': ContentFiltersSerializer(filters).data,
            'active': is_filter_active(filters),
        })


# ====== LOCATION ======
class ChildLocationView(ParentChildrenMixin, APIView):
    """Retrieves the most recent known location for a child, with its address."""
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current Child Location", responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT})
    def get(self, request, child_id, *args, **kwargs):
        try:
            child = self.get_child(child_id)
        except FirebaseServiceError as e:
            return service_error_response(e)
        location = location_of(child)
        if not location:
            raise Http404("No location data found for this child.")
        data = dict(LocationSerializer(location).data)
        data['address'] = reverse_geocode(location['latitude'], location['longitude'])
        return Response(data)


class ChildLocationHistoryView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Child Location History", parameters=[LocationHistoryQuerySerializer], responses={200: OpenApiTypes.OBJECT})
    def get(self, request, child_id, *args, **kwargs):
        query = LocationHistoryQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            child = self.get_child(child_id)
        except FirebaseServiceError as e:
            return service_error_response(e)
        points = location_history(child, **query.validated_data)
        return Response({
            'child_id': child_id,
            'count': len(points),
            'results': LocationSerializer(points, many=True).data,
        })


class LocationRefreshView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Request Location Refresh", request=None, responses={202: OpenApiTypes.OBJECT})
    def post(self, request, child_id, *args, **kwargs):
        try:
            self.get_child(child_id)
            values = firebase_service.request_location_refresh(child_id)
        except FirebaseServiceError as e:
            return service_error_response(e)
        return Response({'message': 'Location refresh requested', **values},
                        status=status.HTTP_202_ACCEPTED)


# ====== DEVICE FLAGS ======
class DeviceLockView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Lock or Unlock Device", request=DeviceLockSerializer, responses={200: OpenApiTypes.OBJECT})
    def put(self, request, child_id, *args, **kwargs):
        serializer = DeviceLockSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        locked = serializer.validated_data['locked']
        try:
            self.get_child(child_id)
            firebase_service.toggle_device_lock(child_id, locked)
        except FirebaseServiceError as e:
            return service_error_response(e)
        return Response({'message': 'Device locked' if locked else 'Device unlocked', 'deviceLocked': locked})


class AppDeletedView(ParentChildrenMixin, APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Set App Deleted Flag", request=AppDeletedSerializer, responses={200: OpenApiTypes.OBJECT})
    def put(self, request, child_id, *args, **kwargs):
        serializer = AppDeletedSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        deleted = serializer.validated_data['deleted']
        try:
            self.get_child(child_id)
            firebase_service.set_app_deleted(child_id, deleted)
        except FirebaseServiceError as e:
            return service_error_response(e)
        return Response({'appDeleted': deleted})
