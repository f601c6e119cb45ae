from typing import Optional

from django.contrib import messages


class AdminHelperMixin:
    """Mixin that shows a short helper message at the top of an admin changelist.

    Usage:
      - Define `admin_helper_message` on your ModelAdmin.
      - The message is shown once per changelist GET through the messages
        framework, so the stock admin templates display it.
    """

    admin_helper_message: Optional[str] = None

    def changelist_view(self, request, extra_context=None):
        if request.method == "GET" and self.admin_helper_message:
            storage = messages.get_messages(request)
            queued = {str(m.message) for m in storage}
            # Reading marks the queue as used; keep it for the template
            storage.used = False
            if self.admin_helper_message not in queued:
                messages.info(request, self.admin_helper_message)
        return super().changelist_view(request, extra_context=extra_context)
