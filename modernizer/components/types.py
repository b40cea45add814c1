"""Closed set of component type tags."""

from __future__ import annotations

_SHAREPOINT = "Microsoft.SharePoint, Version=16.0.0.0, Culture=neutral, PublicKeyToken=71e9bce111e9429c"
_PUBLISHING = (
    "Microsoft.SharePoint.Publishing, Version=16.0.0.0, Culture=neutral, "
    "PublicKeyToken=71e9bce111e9429c"
)
_PORTAL = (
    "Microsoft.SharePoint.Portal, Version=16.0.0.0, Culture=neutral, "
    "PublicKeyToken=71e9bce111e9429c"
)
_CHART = (
    "Microsoft.Office.Server.Chart, Version=16.0.0.0, Culture=neutral, "
    "PublicKeyToken=71e9bce111e9429c"
)

XSLT_LIST_VIEW = f"Microsoft.SharePoint.WebPartPages.XsltListViewWebPart, {_SHAREPOINT}"
LIST_VIEW = f"Microsoft.SharePoint.WebPartPages.ListViewWebPart, {_SHAREPOINT}"
MEDIA = f"Microsoft.SharePoint.Publishing.WebControls.MediaWebPart, {_PUBLISHING}"
PICTURE_LIBRARY_SLIDESHOW = (
    f"Microsoft.SharePoint.WebPartPages.PictureLibrarySlideshowWebPart, {_SHAREPOINT}"
)
CHART = f"Microsoft.Office.Server.WebControls.ChartWebPart, {_CHART}"
MEMBERS = f"Microsoft.SharePoint.WebPartPages.MembersWebPart, {_SHAREPOINT}"
SILVERLIGHT = f"Microsoft.SharePoint.WebPartPages.SilverlightWebPart, {_SHAREPOINT}"
CLIENT = f"Microsoft.SharePoint.WebPartPages.ClientWebPart, {_SHAREPOINT}"
SCRIPT_EDITOR = f"Microsoft.SharePoint.WebPartPages.ScriptEditorWebPart, {_SHAREPOINT}"
SP_USER_CODE = f"Microsoft.SharePoint.WebPartPages.SPUserCodeWebPart, {_SHAREPOINT}"
SIMPLE_FORM = f"Microsoft.SharePoint.WebPartPages.SimpleFormWebPart, {_SHAREPOINT}"
CONTENT_EDITOR = f"Microsoft.SharePoint.WebPartPages.ContentEditorWebPart, {_SHAREPOINT}"
XML = f"Microsoft.SharePoint.WebPartPages.XmlWebPart, {_SHAREPOINT}"
IMAGE = f"Microsoft.SharePoint.WebPartPages.ImageWebPart, {_SHAREPOINT}"
SITE_DOCUMENTS = f"Microsoft.SharePoint.Portal.WebControls.SiteDocuments, {_PORTAL}"
SUMMARY_LINK = f"Microsoft.SharePoint.Publishing.WebControls.SummaryLinkWebPart, {_PUBLISHING}"
CONTENT_BY_QUERY = f"Microsoft.SharePoint.Publishing.WebControls.ContentByQueryWebPart, {_PUBLISHING}"

# Records synthesized from page markup rather than loaded from the page.
WIKI_TEXT = "Modernizer.WikiTextPart"
WIKI_IMAGE = "Modernizer.WikiImagePart"
WIKI_VIDEO = "Modernizer.WikiVideoPart"

UNKNOWN = "Unknown"
NON_EXPORTABLE_UNIDENTIFIED = "NonExportable_Unidentified"

KNOWN_TYPES: tuple[str, ...] = (
    XSLT_LIST_VIEW,
    LIST_VIEW,
    MEDIA,
    PICTURE_LIBRARY_SLIDESHOW,
    CHART,
    MEMBERS,
    SILVERLIGHT,
    CLIENT,
    SCRIPT_EDITOR,
    SP_USER_CODE,
    SIMPLE_FORM,
    CONTENT_EDITOR,
    XML,
    IMAGE,
    SITE_DOCUMENTS,
    SUMMARY_LINK,
    CONTENT_BY_QUERY,
    WIKI_TEXT,
    WIKI_IMAGE,
    WIKI_VIDEO,
)


def same_type(left: str, right: str) -> bool:
    """Compare two type tags case-insensitively."""

    return left.casefold() == right.casefold()
