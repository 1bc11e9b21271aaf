"""
Standard-entity catalog.

A static, immutable catalog of the platform's standard (CDM) entities used
by the standard-entity matcher. Each entry carries its logical id, display
name, common aliases and canonical attributes; attributes with a semantic
role (email, phone, url) also match user columns of the same type.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class CanonicalAttribute:
    name: str
    role: Optional[str] = None


@dataclass(frozen=True)
class StandardEntity:
    """
    A standard entity of the target platform.

    Attributes:
        id: Logical name (e.g. ``contact``).
        display_name: Display name (e.g. ``Contact``).
        description: One-line description.
        aliases: Alternative names users commonly give the entity.
        attributes: Canonical attributes.
    """
    id: str
    display_name: str
    description: str = ""
    aliases: Tuple[str, ...] = ()
    attributes: Tuple[CanonicalAttribute, ...] = ()

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.attributes)


def _attrs(*entries: str) -> Tuple[CanonicalAttribute, ...]:
    """``"emailaddress1:email"`` -> CanonicalAttribute("emailaddress1", "email")."""
    result = []
    for entry in entries:
        name, _, role = entry.partition(":")
        result.append(CanonicalAttribute(name, role or None))
    return tuple(result)


DEFAULT_CATALOG: Tuple[StandardEntity, ...] = (
    StandardEntity(
        "account", "Account",
        "Business that represents a customer or potential customer.",
        ("Customer", "Company", "Organization"),
        _attrs(
            "accountid", "name", "accountnumber", "primarycontactid",
            "emailaddress1:email", "telephone1:phone", "fax:phone", "websiteurl:url",
            "address1_line1", "address1_city", "address1_postalcode", "address1_country",
            "industrycode", "revenue", "numberofemployees", "description",
        ),
    ),
    StandardEntity(
        "contact", "Contact",
        "Person with whom a business unit has a relationship.",
        ("Person", "Individual"),
        _attrs(
            "contactid", "fullname", "firstname", "lastname", "middlename",
            "emailaddress1:email", "telephone1:phone", "mobilephone:phone", "websiteurl:url",
            "jobtitle", "birthdate", "gendercode", "parentcustomerid",
            "address1_line1", "address1_city", "address1_postalcode", "address1_country",
        ),
    ),
    StandardEntity(
        "lead", "Lead",
        "Prospect or potential customer for products or services.",
        ("Prospect",),
        _attrs(
            "leadid", "fullname", "firstname", "lastname", "companyname", "subject",
            "emailaddress1:email", "telephone1:phone", "mobilephone:phone", "websiteurl:url",
            "leadsourcecode", "estimatedvalue", "jobtitle",
        ),
    ),
    StandardEntity(
        "opportunity", "Opportunity",
        "Potential revenue-generating event.",
        ("Deal", "Sale"),
        _attrs(
            "opportunityid", "name", "customerid", "parentaccountid", "parentcontactid",
            "estimatedvalue", "estimatedclosedate", "actualvalue", "actualclosedate",
            "closeprobability", "stepname", "description",
        ),
    ),
    StandardEntity(
        "incident", "Case",
        "Service request case associated with a contract.",
        ("Case", "Ticket", "Issue", "SupportCase"),
        _attrs(
            "incidentid", "title", "ticketnumber", "customerid", "description",
            "prioritycode", "severitycode", "caseorigincode", "resolveby",
        ),
    ),
    StandardEntity(
        "product", "Product",
        "Information about products and their pricing.",
        ("Item", "Article", "Sku"),
        _attrs(
            "productid", "name", "productnumber", "description", "price",
            "standardcost", "currentcost", "quantityonhand", "producttypecode", "vendorname",
        ),
    ),
    StandardEntity(
        "salesorder", "Order",
        "Quote that has been accepted.",
        ("Order", "PurchaseOrder", "SalesOrder"),
        _attrs(
            "salesorderid", "name", "ordernumber", "customerid", "totalamount",
            "totaltax", "discountamount", "requestdeliveryby", "datefulfilled",
            "shipto_line1", "shipto_city", "description",
        ),
    ),
    StandardEntity(
        "invoice", "Invoice",
        "Order that has been billed.",
        ("Bill", "Billing"),
        _attrs(
            "invoiceid", "name", "invoicenumber", "customerid", "salesorderid",
            "totalamount", "totaltax", "duedate", "datedelivered", "description",
        ),
    ),
    StandardEntity(
        "quote", "Quote",
        "Formal offer for products and/or services.",
        ("Quotation", "Estimate", "Proposal"),
        _attrs(
            "quoteid", "name", "quotenumber", "customerid", "opportunityid",
            "totalamount", "effectivefrom", "effectiveto", "expireson", "description",
        ),
    ),
    StandardEntity(
        "campaign", "Campaign",
        "Container for campaign activities and responses.",
        ("MarketingCampaign", "Promotion"),
        _attrs(
            "campaignid", "name", "codename", "budgetedcost", "actualstart",
            "actualend", "proposedstart", "proposedend", "objective", "description",
        ),
    ),
    StandardEntity(
        "competitor", "Competitor",
        "Business competing for the sale represented by a lead or opportunity.",
        ("Rival",),
        _attrs(
            "competitorid", "name", "websiteurl:url", "strengths", "weaknesses",
            "opportunities", "threats", "reportedrevenue", "tickersymbol",
        ),
    ),
    StandardEntity(
        "task", "Task",
        "Generic activity representing work to be done.",
        ("Todo", "ToDo", "Assignment"),
        _attrs(
            "activityid", "subject", "description", "scheduledstart", "scheduledend",
            "actualdurationminutes", "percentcomplete", "prioritycode", "regardingobjectid",
        ),
    ),
    StandardEntity(
        "appointment", "Appointment",
        "Commitment representing a time interval with start/end times and duration.",
        ("Meeting", "Event", "Booking"),
        _attrs(
            "activityid", "subject", "location", "scheduledstart", "scheduledend",
            "scheduleddurationminutes", "isalldayevent", "requiredattendees", "description",
        ),
    ),
    StandardEntity(
        "phonecall", "Phone Call",
        "Activity to track a telephone call.",
        ("Call", "PhoneCall"),
        _attrs(
            "activityid", "subject", "phonenumber:phone", "directioncode",
            "actualdurationminutes", "scheduledstart", "description", "regardingobjectid",
        ),
    ),
    StandardEntity(
        "email", "Email",
        "Activity that is delivered using email protocols.",
        ("EmailMessage", "Mail", "Message"),
        _attrs(
            "activityid", "subject", "sender:email", "torecipients:email", "description",
            "directioncode", "senton", "regardingobjectid",
        ),
    ),
    StandardEntity(
        "systemuser", "User",
        "Person with access to the system and who owns objects in the database.",
        ("User", "Employee", "Staff"),
        _attrs(
            "systemuserid", "fullname", "firstname", "lastname", "domainname",
            "internalemailaddress:email", "mobilephone:phone", "jobtitle", "businessunitid",
        ),
    ),
    StandardEntity(
        "team", "Team",
        "Collection of system users that routinely collaborate.",
        ("Group", "WorkGroup"),
        _attrs(
            "teamid", "name", "businessunitid", "administratorid",
            "emailaddress:email", "teamtype", "description",
        ),
    ),
    StandardEntity(
        "businessunit", "Business Unit",
        "Business, division, or department in the database.",
        ("Department", "Division", "Branch"),
        _attrs(
            "businessunitid", "name", "parentbusinessunitid", "divisionname",
            "emailaddress:email", "websiteurl:url", "costcenter", "description",
        ),
    ),
    StandardEntity(
        "pricelevel", "Price List",
        "Entity that defines pricing levels.",
        ("PriceList", "PriceBook", "Pricing"),
        _attrs(
            "pricelevelid", "name", "begindate", "enddate", "transactioncurrencyid",
            "freighttermscode", "description",
        ),
    ),
)
