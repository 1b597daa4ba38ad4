"""
Carrier directory.

Static reference data for ocean carriers, airlines and parcel couriers:
owner-code prefixes, public tracking pages and which carriers have a
direct API adapter.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from shipment_tracker.app.models.tracking_enums import IdentifierType
from shipment_tracker.app.schemas.tracking import CarrierInfo


@dataclass(frozen=True)
class CarrierDetails:
    code: str
    name: str
    mode: str  # ocean, air, parcel
    prefixes: Tuple[str, ...]
    tracking_url: str
    container_tracking_url: Optional[str] = None
    api_supported: bool = False

    def url_for(self, number: str, identifier_type: IdentifierType = IdentifierType.UNKNOWN) -> str:
        template = self.tracking_url
        if identifier_type == IdentifierType.CONTAINER and self.container_tracking_url:
            template = self.container_tracking_url
        return template.format(number=number)


CARRIERS: Tuple[CarrierDetails, ...] = (
    # Ocean carriers
    CarrierDetails(
        "maersk", "Maersk", "ocean", ("MAEU", "MRKU", "MSKU"),
        "https://www.maersk.com/tracking?number={number}&type=bill-of-lading",
        "https://www.maersk.com/tracking/{number}",
        api_supported=True,
    ),
    CarrierDetails(
        "msc", "MSC", "ocean", ("MSCU", "MEDU", "MSCI", "MEDI"),
        "https://www.msc.com/track-a-shipment?agencyPath=msc&trackingNumber={number}",
        api_supported=True,
    ),
    CarrierDetails(
        "cma-cgm", "CMA CGM", "ocean", ("CMAU", "CXDU", "CMDU"),
        "https://www.cma-cgm.com/ebusiness/tracking/search?number={number}",
    ),
    CarrierDetails(
        "hapag-lloyd", "Hapag-Lloyd", "ocean", ("HLXU", "HLCU", "HPLU"),
        "https://www.hapag-lloyd.com/en/online-business/track/track-by-booking-solution.html?booking={number}",
        "https://www.hapag-lloyd.com/en/online-business/track/track-by-container-solution.html?container={number}",
    ),
    CarrierDetails(
        "cosco", "COSCO Shipping", "ocean", ("COSU", "CBHU"),
        "https://elines.coscoshipping.com/ebusiness/cargoTracking?trackingType=BOOKING&number={number}",
        "https://elines.coscoshipping.com/ebusiness/cargoTracking?trackingType=CONTAINER&number={number}",
    ),
    CarrierDetails(
        "evergreen", "Evergreen Line", "ocean", ("EVRU", "EGHU", "EVGU", "EGLV"),
        "https://www.evergreen-line.com/emodal/stpb/stpb_show.do?lang=en&f_cmd=track&f_bl_no={number}",
        "https://www.evergreen-line.com/emodal/stpb/stpb_show.do?lang=en&f_cmd=track&f_container_no={number}",
    ),
    CarrierDetails(
        "oocl", "OOCL", "ocean", ("OOLU", "OOCU"),
        "https://www.oocl.com/eng/ourservices/eservices/cargotracking/Pages/cargotracking.aspx?BLNo={number}",
        "https://www.oocl.com/eng/ourservices/eservices/cargotracking/Pages/cargotracking.aspx?ContainerNo={number}",
    ),
    CarrierDetails(
        "one", "ONE Line", "ocean", ("ONEY", "ONEU", "ONEE"),
        "https://ecomm.one-line.com/ecom/CUP_HOM_3301.do?trackingNumber={number}",
    ),
    CarrierDetails(
        "blue-star", "Blue Star Maritime", "ocean", ("BMOU",),
        "https://www.bluestarferries.com/en/cargo-tracking?bl={number}",
        "https://www.bluestarferries.com/en/cargo-tracking?container={number}",
    ),
    CarrierDetails(
        "zim", "ZIM", "ocean", ("ZIMU", "ZIMB"),
        "https://www.zim.com/tools/track-a-shipment?bl={number}",
        "https://www.zim.com/tools/track-a-shipment?container={number}",
    ),
    CarrierDetails(
        "yang-ming", "Yang Ming", "ocean", ("YMLU", "YAMU"),
        "https://www.yangming.com/e-service/Track_Trace/track_trace_cargo_tracking.aspx?bl={number}",
        "https://www.yangming.com/e-service/Track_Trace/track_trace_cargo_tracking.aspx?container={number}",
    ),
    CarrierDetails(
        "hmm", "HMM", "ocean", ("HMMU",),
        "https://www.hmm21.com/cms/business/ebiz/trackTrace/trackTrace/index.jsp?bl={number}",
        "https://www.hmm21.com/cms/business/ebiz/trackTrace/trackTrace/index.jsp?container={number}",
    ),
    CarrierDetails(
        "pil", "PIL", "ocean", ("PILU",),
        "https://www.pilship.com/en--/120.html?bl={number}",
        "https://www.pilship.com/en--/120.html?container={number}",
    ),
    CarrierDetails(
        "k-line", "K Line", "ocean", ("KLNU",),
        "https://www.kline.com/en/service/tracking?bl={number}",
        "https://www.kline.com/en/service/tracking?container={number}",
    ),
    CarrierDetails(
        "apl", "APL", "ocean", ("APLU",),
        "https://www.apl.com/ebusiness/tracking?bl={number}",
        "https://www.apl.com/ebusiness/tracking?container={number}",
    ),
    CarrierDetails(
        "wan-hai", "Wan Hai Lines", "ocean", ("WHLU",),
        "https://www.wanhai-lines.com/service/tracking?bl={number}",
        "https://www.wanhai-lines.com/service/tracking?container={number}",
    ),
    CarrierDetails(
        "arkas", "Arkas Line", "ocean", ("ARKU",),
        "https://www.arkasline.com.tr/en/cargo-tracking?bl={number}",
        "https://www.arkasline.com.tr/en/cargo-tracking?container={number}",
    ),
    # Airlines, keyed by IATA airline prefix
    CarrierDetails(
        "ethiopian-airlines", "Ethiopian Airlines", "air", ("071",),
        "https://www.ethiopianairlines.com/aa/trackyourshipment?awb={number}",
    ),
    CarrierDetails(
        "emirates", "Emirates SkyCargo", "air", ("176",),
        "https://www.skychain.emirates.com/Tracking/Tracking.aspx?awb={number}",
    ),
    CarrierDetails(
        "american-airlines", "American Airlines Cargo", "air", ("001",),
        "https://www.aacargo.com/track/?awb={number}",
    ),
    CarrierDetails(
        "qatar-airways", "Qatar Airways Cargo", "air", ("157",),
        "https://www.qrcargo.com/track-shipment?awb={number}",
    ),
    CarrierDetails(
        "lufthansa", "Lufthansa Cargo", "air", ("020",),
        "https://lufthansa-cargo.com/tracking?awb={number}",
    ),
    CarrierDetails(
        "united-cargo", "United Cargo", "air", ("016",),
        "https://www.unitedcargo.com/track?awb={number}",
    ),
    # Parcel couriers
    CarrierDetails("ups", "UPS", "parcel", ("1Z",), "https://www.ups.com/track?tracknum={number}"),
    CarrierDetails("usps", "USPS", "parcel", (), "https://tools.usps.com/go/TrackConfirmAction?tLabels={number}"),
    CarrierDetails("dhl", "DHL Express", "parcel", ("JD",), "https://www.dhl.com/en/express/tracking.html?AWB={number}"),
)

CARRIERS_BY_CODE: Dict[str, CarrierDetails] = {carrier.code: carrier for carrier in CARRIERS}

# Container owner codes only; airline and courier prefixes are matched by shape.
OCEAN_PREFIXES: Dict[str, str] = {
    prefix: carrier.code
    for carrier in CARRIERS if carrier.mode == "ocean"
    for prefix in carrier.prefixes
}

AIRLINE_PREFIXES: Dict[str, str] = {
    prefix: carrier.code
    for carrier in CARRIERS if carrier.mode == "air"
    for prefix in carrier.prefixes
}


def get_carrier(code: Optional[str]) -> Optional[CarrierDetails]:
    if not code:
        return None
    return CARRIERS_BY_CODE.get(code.strip().lower())


def carrier_for_prefix(prefix: str) -> Optional[str]:
    """Carrier code for a 4-letter container owner prefix."""
    return OCEAN_PREFIXES.get(prefix.upper())


def carrier_info(code: Optional[str], number: str, identifier_type: IdentifierType = IdentifierType.UNKNOWN) -> Optional[CarrierInfo]:
    carrier = get_carrier(code)
    if carrier is None:
        return None
    return CarrierInfo(
        name=carrier.name,
        tracking_url=carrier.url_for(number, identifier_type),
        api_supported=carrier.api_supported,
    )
