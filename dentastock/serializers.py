from rest_framework import serializers


class ClientIdMixin(serializers.Serializer):
    """
    Lets API clients choose the UUID of a new record.

    The offline client generates ids locally so that a queued create keeps
    its identity when it is replayed. The id is ignored on update.
    """

    id = serializers.UUIDField(required=False)

    def validate_id(self, value):
        if self.instance is not None:
            return self.instance.pk
        model = self.Meta.model
        if model.objects.filter(pk=value).exists():
            raise serializers.ValidationError(
                f"{model._meta.verbose_name.capitalize()} with this id already exists."
            )
        return value
