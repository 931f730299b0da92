from rest_framework import serializers

from .status_utils import format_timestamp, is_online, last_seen_text


class SignInSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)
    password = serializers.CharField(required=True, style={'input_type': 'password'})


class SignUpSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    email = serializers.EmailField(required=True)
    password = serializers.CharField(write_only=True, required=True, min_length=6)
    password2 = serializers.CharField(write_only=True, required=True, label="Confirm password")

    def validate_email(self, value):
        return value.lower()

    def validate(self, attrs):
        if attrs['password'] != attrs['password2']:
            raise serializers.ValidationError({"password_confirmation": "Passwords do not match"})
        return attrs


class EmailSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)


class ParentProfileSerializer(serializers.Serializer):
    uid = serializers.CharField()
    email = serializers.EmailField()
    name = serializers.CharField(allow_blank=True, required=False, default='')
    createdAt = serializers.IntegerField(required=False, allow_null=True)
    role = serializers.CharField(required=False, default='parent')


class ChildSummarySerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField(required=False, allow_blank=True, default='')
    email = serializers.CharField(required=False, allow_blank=True, default='')
    parentEmail = serializers.CharField(required=False, allow_blank=True, default='')
    lastUpdated = serializers.SerializerMethodField()
    is_online = serializers.SerializerMethodField()
    last_seen = serializers.SerializerMethodField()
    last_updated_display = serializers.SerializerMethodField()
    deviceLocked = serializers.BooleanField(required=False, default=False)
    appDeleted = serializers.BooleanField(required=False, default=False)

    def _now(self):
        return self.context.get('now')

    def get_lastUpdated(self, obj):
        return obj.get('lastUpdated')

    def get_is_online(self, obj):
        return is_online(obj.get('lastUpdated'), now=self._now())

    def get_last_seen(self, obj):
        return last_seen_text(obj.get('lastUpdated'), now=self._now())

    def get_last_updated_display(self, obj):
        return format_timestamp(obj.get('lastUpdated'))


class AppSerializer(serializers.Serializer):
    appId = serializers.CharField()
    appName = serializers.CharField(required=False, allow_blank=True, default='')
    packageName = serializers.CharField(required=False, allow_blank=True, default='')
    blocked = serializers.BooleanField(required=False, default=False)
    blockedAt = serializers.ReadOnlyField()


class ContentFiltersSerializer(serializers.Serializer):
    nudity = serializers.BooleanField(default=False)
    violence = serializers.BooleanField(default=False)
    harmfulText = serializers.BooleanField(default=False)


class LocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    timestamp = serializers.IntegerField(allow_null=True)
    accuracy = serializers.FloatField(allow_null=True, required=False)


# --- Request bodies ---

class ChildNameSerializer(serializers.Serializer):
    name = serializers.CharField(required=True, allow_blank=True, max_length=100)

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Name cannot be empty")
        return value.strip()


class BlockedAppUpdateSerializer(serializers.Serializer):
    blocked = serializers.BooleanField(required=True)


class ContentFilterToggleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(required=True, help_text="Turns explicit-content protection on or off.")
    apply_to_all = serializers.BooleanField(required=False, default=False,
                                            help_text="Apply the change to every child of this parent.")


class DeviceLockSerializer(serializers.Serializer):
    locked = serializers.BooleanField(required=True)


class AppDeletedSerializer(serializers.Serializer):
    deleted = serializers.BooleanField(required=True)


class LocationHistoryQuerySerializer(serializers.Serializer):
    since = serializers.IntegerField(required=False, min_value=0, help_text="Epoch milliseconds, inclusive.")
    until = serializers.IntegerField(required=False, min_value=0, help_text="Epoch milliseconds, inclusive.")
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000)
