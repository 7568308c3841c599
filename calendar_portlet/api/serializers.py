from __future__ import annotations          # Permite usar anotaciones de tipos como strings (typing moderno)

from rest_framework import serializers      # Serializers de Django REST Framework (validación y parsing)

from calendar_portlet.utils.datetime import is_valid_tz


class CalendarDatesSerializer(serializers.Serializer):
    """
    Valida el cambio de ventana de fechas (startDate/days) enviado por AJAX.
    """
    startDate = serializers.DateField(required=False)
    days = serializers.IntegerField(required=False, min_value=1, max_value=365)
    timezone = serializers.CharField(required=False, allow_blank=False, max_length=64)

    def validate_timezone(self, value):
        if not is_valid_tz(value):
            raise serializers.ValidationError(f"Timezone desconocido: {value}")
        return value

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Debes enviar startDate, days o timezone.")
        return attrs


class EventListQuerySerializer(serializers.Serializer):
    """
    Valida query params del listado de eventos.
    """
    interval = serializers.CharField(required=False, allow_blank=True)


class EventOutSerializer(serializers.Serializer):
    """
    Normaliza salida (no exponemos el objeto crudo completo si no hace falta).
    """
    id = serializers.CharField()
    calendar = serializers.IntegerField()
    summary = serializers.CharField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_null=True)
    location = serializers.CharField(required=False, allow_null=True)

    start = serializers.DictField()
    end = serializers.DictField()

    htmlLink = serializers.CharField(required=False, allow_null=True)
    status = serializers.CharField(required=False, allow_null=True)
