from django.conf import settings
from rest_framework import serializers

from .selectors import SEARCH_TYPES, SORT_LIKE


class RecursiveField(serializers.Serializer):
    def to_representation(self, value):
        serializer = self.parent.parent.__class__(value, context=self.context)
        return serializer.data


class CommentFilterSerializer(serializers.Serializer):
    """get_cmts 조회 조건. validated_data 를 그대로 get_cmts(**data) 로 넘긴다."""
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    only_deleted = serializers.BooleanField(default=False)
    is_deleted = serializers.BooleanField(default=False)
    search = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    search_type = serializers.ChoiceField(choices=SEARCH_TYPES, required=False, allow_null=True, default=None)
    board_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    sort = serializers.CharField(required=False, allow_null=True, default=SORT_LIKE)
    is_own = serializers.BooleanField(default=False)
    is_flat = serializers.BooleanField(default=False)
    writer_id = serializers.IntegerField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        attrs.setdefault('limit', settings.CMT_DEFAULT_LIMIT)
        return attrs


class CommentItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    board_id = serializers.IntegerField()
    board_title = serializers.CharField()
    category = serializers.CharField()
    category_path = serializers.CharField()
    created_at = serializers.DateTimeField()
    content = serializers.CharField()
    like = serializers.IntegerField()
    dislike = serializers.IntegerField()
    reply_id = serializers.IntegerField(allow_null=True)
    reply_user = serializers.CharField(allow_null=True)
    reply_user_id = serializers.IntegerField(allow_null=True)
    writer = serializers.CharField()
    writer_id = serializers.IntegerField()
    writer_profile = serializers.CharField()
    contain_cmt = RecursiveField(many=True, read_only=True)
    is_do_like = serializers.BooleanField()
    is_do_dislike = serializers.BooleanField()
    is_did_report = serializers.BooleanField()
    is_deleted = serializers.BooleanField()
    board_cmt_cnt = serializers.IntegerField()


class CommentListSerializer(serializers.Serializer):
    cmt_list = CommentItemSerializer(many=True)
    cmt_cnt = serializers.IntegerField()
