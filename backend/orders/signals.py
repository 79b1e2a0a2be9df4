from django.dispatch import Signal

# Custom signals that other apps can listen to. Both are sent after the
# order's transaction commits.
#   order_created(sender=Order, order=Order)
#   order_status_changed(sender=Order, order=Order, previous_status=str, user=User|None)
order_created = Signal()
order_status_changed = Signal()
