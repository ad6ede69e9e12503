"""Enrichment matcher: extracts award options from provider records and matches them to a cash slice.

A record that cannot be read is skipped; one bad record never hides the
rest of a carrier's batch.
"""

import logging
from typing import Any

from milevalue.schemas.enrichment import DirectRecord, LegacyRecord, parse_record
from milevalue.schemas.flight import Slice
from milevalue.services.awards.award_options import AwardOption, deduplicate_award_options
from milevalue.services.awards.cabins import direct_cabin, normalize_cabin
from milevalue.services.awards.fingerprint import operating_carrier, slice_cabin
from milevalue.services.awards.pricing import parse_price
from milevalue.services.awards.timestamps import minutes_between, to_minute

logger = logging.getLogger(__name__)


def _from_direct(record: DirectRecord) -> list[AwardOption]:
    data = record.data
    segments = [segment for itinerary in data.itineraries for segment in itinerary.segments]
    if not segments:
        logger.debug(f"Direct record {data.id!r} has no segments, skipping")
        return []

    first, last = segments[0], segments[-1]
    origin = (first.departure.iata_code if first.departure else "") or data.origin
    destination = (last.arrival.iata_code if last.arrival else "") or data.destination
    departure = first.departure.at if first.departure else ""
    arrival = last.arrival.at if last.arrival else ""

    duration = sum(itinerary.duration for itinerary in data.itineraries)
    if not duration:
        duration = round(minutes_between(departure, arrival) or 0)

    layovers = [
        layover.airport.code
        for itinerary in data.itineraries
        for layover in itinerary.layovers
        if layover.airport and layover.airport.code
    ]
    if not layovers:
        layovers = [s.arrival.iata_code for s in segments[:-1] if s.arrival and s.arrival.iata_code]

    carrier = first.operating_carrier
    flight_numbers = [s.flight_number for s in segments if s.flight_number]
    base_id = data.id or f"{carrier}-{','.join(flight_numbers)}-{to_minute(departure)}"
    snapshot = [itinerary.model_dump(by_alias=True) for itinerary in data.itineraries]

    options = []
    for name, price in data.cabin_prices.items():
        cabin = direct_cabin(name)
        if cabin is None:
            logger.debug(f"Unknown direct cabin name {name!r} on record {base_id!r}")
            continue
        if price.miles <= 0:
            continue
        options.append(AwardOption(
            id=f"{base_id}-{cabin}",
            miles=price.miles,
            tax=parse_price(price.tax),
            cabin=cabin,
            carrier=carrier,
            origin=origin,
            destination=destination,
            departure=departure,
            arrival=arrival,
            duration_minutes=duration,
            flight_numbers=flight_numbers,
            layovers=layovers,
            seats=price.seats,
            transfer_options=price.transfer_options,
            itinerary={"itineraries": snapshot},
            route_origin=data.origin or origin,
            route_destination=data.destination or destination,
            source="direct",
        ))
    return options


def _from_legacy(record: LegacyRecord) -> list[AwardOption]:
    options = []
    for slice_ in record.itinerary.slices:
        for segment in slice_.mileage_breakdown or []:
            for candidate in segment.all_matching_flights:
                carrier = candidate.carrier
                if candidate.mileage <= 0 or not carrier:
                    continue
                cabin = normalize_cabin(candidate.cabin)
                origin = candidate.origin or segment.origin
                destination = candidate.destination or segment.destination
                departure = candidate.departs_at
                arrival = candidate.arrives_at
                options.append(AwardOption(
                    id=f"legacy-{carrier}{candidate.flight_number}-{to_minute(departure)}-{cabin}-{candidate.mileage}",
                    miles=candidate.mileage,
                    tax=candidate.price,
                    cabin=cabin,
                    carrier=carrier,
                    origin=origin,
                    destination=destination,
                    departure=departure,
                    arrival=arrival,
                    duration_minutes=round(minutes_between(departure, arrival) or 0),
                    flight_numbers=[candidate.flight_number] if candidate.flight_number else [],
                    layovers=candidate.stops,
                    itinerary=candidate.model_dump(by_alias=True),
                    route_origin=segment.origin or origin,
                    route_destination=segment.destination or destination,
                    source="legacy",
                ))
    return options


def extract_award_options(raw: Any) -> list[AwardOption]:
    """All award options in one raw record, whichever schema generation it uses."""
    record = parse_record(raw)
    if record is None:
        return []
    try:
        if isinstance(record, DirectRecord):
            return _from_direct(record)
        return _from_legacy(record)
    except Exception as e:
        logger.debug(f"Failed to extract award options from {record.provider!r} record: {e}")
        return []


def collect_award_options(carrier_batches: dict[str, list[Any]], carrier: str) -> list[AwardOption]:
    """Deduplicated options operated by `carrier`, extracted from that carrier's batch."""
    options = [
        option
        for raw in carrier_batches.get(carrier) or []
        for option in extract_award_options(raw)
        if option.carrier == carrier
    ]
    return deduplicate_award_options(options)


def route_matches(option: AwardOption, slice_: Slice) -> bool:
    origin = option.route_origin or option.origin
    destination = option.route_destination or option.destination
    if slice_.origin.code and origin != slice_.origin.code:
        return False
    if slice_.destination.code and destination != slice_.destination.code:
        return False
    return True


def matching_options(carrier_batches: dict[str, list[Any]], slice_: Slice) -> list[AwardOption]:
    """Options whose carrier, normalized cabin and route all match the slice, in record order."""
    carrier = operating_carrier(slice_)
    if not carrier:
        return []
    cabin = slice_cabin(slice_)
    return [
        option
        for raw in carrier_batches.get(carrier) or []
        for option in extract_award_options(raw)
        if option.carrier == carrier and option.cabin == cabin and route_matches(option, slice_)
    ]


def match_enrichment(
    carrier_batches: dict[str, list[Any]],
    slice_: Slice,
    per_mile_value: float,
) -> AwardOption | None:
    """Lowest-valued award option for the slice's carrier, cabin and route; first found wins ties."""
    best = None
    best_value = None
    for option in matching_options(carrier_batches, slice_):
        v = option.value(per_mile_value)
        if best_value is None or v < best_value:
            best, best_value = option, v
    return best
