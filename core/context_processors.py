from .context import get_store_context


def global_context(request):
    """
    Injects common context variables into every template:
      - store              : the StoreContext for this request
      - analytics_enabled  : whether tracking scripts should render
    """
    store = get_store_context(request)

    return {
        'store':             store,
        'analytics_enabled': store.analytics_enabled,
    }
