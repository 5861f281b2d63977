from datetime import datetime, date
import pytz

from recipe_costing.config import settings


def get_business_tz():
    """Configured business timezone"""
    return pytz.timezone(settings.TIMEZONE)

def get_local_now():
    """Get current time in the business timezone"""
    return datetime.now(get_business_tz())

def get_local_today() -> date:
    """Today's date in the business timezone"""
    return get_local_now().date()
