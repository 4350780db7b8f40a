"""
Link Audit - Configuration & Branding
"""

# Brand Colors
BRAND_ORANGE = "#F7931E"
BRAND_NAVY = "#1E2A5E"
BRAND_LIGHT_NAVY = "#E8EAF0"
BRAND_GRAY = "#6B7280"

# Status Colors
STATUS_AVAILABLE = "#10B981"    # Green
STATUS_MAINTENANCE = "#F59E0B"  # Amber
STATUS_UNAVAILABLE = "#EF4444"  # Red
STATUS_SKIPPED = "#6B7280"      # Gray

# App Configuration
APP_TITLE = "Link Audit"
APP_ICON = "🔗"
TAGLINE = "Controleer of de gelinkte reizen, cruises en bestemmingen nog bestaan"

# Availability label (see link_audit.export.availability_label) -> display
AVAILABILITY_DISPLAY = {
    "Yes": {"icon": "✓", "label": "Beschikbaar", "color": STATUS_AVAILABLE, "css": "status-available"},
    "No": {"icon": "✗", "label": "Niet beschikbaar", "color": STATUS_UNAVAILABLE, "css": "status-unavailable"},
    "Broken 404": {"icon": "✗", "label": "Broken 404", "color": STATUS_UNAVAILABLE, "css": "status-unavailable"},
    "Maintenance": {"icon": "⚠", "label": "Onderhoud", "color": STATUS_MAINTENANCE, "css": "status-maintenance"},
    "Timeout": {"icon": "⚠", "label": "Timeout", "color": STATUS_MAINTENANCE, "css": "status-maintenance"},
    "Skipped (Special)": {"icon": "–", "label": "Overgeslagen", "color": STATUS_SKIPPED, "css": "status-skipped"},
    "Unknown": {"icon": "?", "label": "Onbekend", "color": STATUS_SKIPPED, "css": "status-skipped"},
}

# Custom CSS for the audit pages
CUSTOM_CSS = f"""
<style>
    /* Import Google Font */
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap');

    /* Global Styles */
    .stApp {{
        font-family: 'Inter', sans-serif;
    }}

    /* Header Styling */
    .main-header {{
        background: linear-gradient(135deg, {BRAND_NAVY} 0%, #2D3A6E 100%);
        padding: 2rem;
        border-radius: 12px;
        margin-bottom: 2rem;
        color: white;
    }}

    .main-header h1 {{
        color: white;
        margin: 0;
        font-weight: 600;
    }}

    .main-header .tagline {{
        color: {BRAND_ORANGE};
        font-size: 1.1rem;
        margin-top: 0.5rem;
    }}

    /* Status Badges */
    .status-badge {{
        display: inline-flex;
        align-items: center;
        padding: 0.25rem 0.75rem;
        border-radius: 9999px;
        font-size: 0.875rem;
        font-weight: 500;
    }}

    .status-available {{
        background: #D1FAE5;
        color: #065F46;
    }}

    .status-maintenance {{
        background: #FEF3C7;
        color: #92400E;
    }}

    .status-unavailable {{
        background: #FEE2E2;
        color: #991B1B;
    }}

    .status-skipped {{
        background: #F3F4F6;
        color: #374151;
    }}

    /* Metric Cards */
    .metric-card {{
        background: white;
        border-radius: 12px;
        padding: 1.5rem;
        text-align: center;
        box-shadow: 0 2px 8px rgba(0,0,0,0.08);
        border: 1px solid #E5E7EB;
    }}

    .metric-value {{
        font-size: 2.5rem;
        font-weight: 700;
        color: {BRAND_NAVY};
    }}

    .metric-label {{
        font-size: 0.875rem;
        color: {BRAND_GRAY};
        margin-top: 0.5rem;
    }}

    /* Button Styles */
    .stButton > button {{
        background: linear-gradient(135deg, {BRAND_ORANGE} 0%, #E8850F 100%);
        color: white;
        border: none;
        border-radius: 8px;
        padding: 0.5rem 1.5rem;
        font-weight: 500;
        transition: transform 0.2s, box-shadow 0.2s;
    }}

    .stButton > button:hover {{
        transform: translateY(-1px);
        box-shadow: 0 4px 12px rgba(247, 147, 30, 0.4);
    }}

    /* Table Styling */
    .dataframe th {{
        background: {BRAND_NAVY};
        color: white;
        padding: 1rem;
    }}

    /* Hide Streamlit branding */
    #MainMenu {{visibility: hidden;}}
    footer {{visibility: hidden;}}
</style>
"""


def get_metric_html(value, label: str, color: str = BRAND_NAVY) -> str:
    """Generate a metric card."""
    return f"""
    <div class="metric-card">
        <div class="metric-value" style="color: {color};">{value}</div>
        <div class="metric-label">{label}</div>
    </div>
    """


def get_status_html(availability_label: str) -> str:
    """Generate status badge HTML for an availability label."""
    display = AVAILABILITY_DISPLAY.get(availability_label, AVAILABILITY_DISPLAY["Unknown"])
    return f'<span class="status-badge {display["css"]}">{display["icon"]} {display["label"]}</span>'
