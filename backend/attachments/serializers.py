from rest_framework import serializers
from django.urls import reverse
from backend.core.serializers import UserSummarySerializer
from .models import Attachment


class AttachmentSerializer(serializers.ModelSerializer):
    uploaded_by = UserSummarySerializer(read_only=True)
    download_url = serializers.SerializerMethodField()

    class Meta:
        model = Attachment
        fields = ['id', 'name', 'url', 'mime_type', 'size', 'task', 'uploaded_by', 'download_url', 'created_at']
        read_only_fields = fields

    def get_download_url(self, obj):
        return reverse('attachment-download', kwargs={'pk': obj.pk})
