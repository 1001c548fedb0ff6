from rest_framework import serializers

from core.models import Bill, Patient

from .fields import CleanCharField


class LineItemSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    description = CleanCharField(required=False, allow_blank=True, allow_null=True)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class BillSerializer(serializers.Serializer):
    """Bill input.  Totals and status are computed, never accepted."""
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    billDate = serializers.DateField(source='bill_date')
    dueDate = serializers.DateField(source='due_date')
    services = LineItemSerializer(many=True, allow_empty=False)
    paidAmount = serializers.DecimalField(source='paid_amount', max_digits=10, decimal_places=2,
                                          required=False)
    # only "overdue" has an effect; other statuses are computed
    status = serializers.ChoiceField(choices=Bill.STATUS_CHOICES, required=False)

    def validate(self, attrs):
        bill_date = attrs.get('bill_date', getattr(self.instance, 'bill_date', None))
        due_date = attrs.get('due_date', getattr(self.instance, 'due_date', None))
        if bill_date and due_date and due_date < bill_date:
            raise serializers.ValidationError({'dueDate': 'due date cannot be before the bill date'})
        return attrs


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
