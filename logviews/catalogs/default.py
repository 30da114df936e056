"""
The bundled catalog: ATOM impressions and LOCUS beacons, the dimension views they
join and the camphistory fast views that can replace raw impression logs.
"""

from functools import lru_cache
from typing import Any, Dict, List

from logviews.models.catalog import Catalog

ATOM_CONNECTION = "locus_atom_fdw"

# Days of camphistory kept in fast views
FAST_VIEW_DAYS = 90


def dblink_view(name: str, query: str, columns: str) -> Dict[str, Any]:
    """
    A dimension view read from the ATOM database through dblink.
    """
    return {
        "name": name,
        "alias": name,
        "connection": ATOM_CONNECTION,
        "query": (
            f"SELECT * FROM dblink({{connection}}, '{query}') AS t({columns})"
        ),
    }


def camphistory_view(
    feature: str,
    column: str,
    pg_type: str,
    cardinality: int,
) -> Dict[str, Any]:
    """
    Daily camphistory of one feature for an advertiser, in the advertiser's time zone.
    """
    hourly = " UNION ".join(
        f"""
        SELECT
          mb.advertiserid,
          ch.campcode,
          {date_expression} AS date,
          ch."{feature}",
          ch.impressions,
          ch.clicks,
          ch.revenue,
          ch.revenueincurrency,
          ch.cost,
          ch.costincurrency
        FROM public.{table} AS ch
        JOIN public.campaigns AS mb ON mb.campcode = ch.campcode
        WHERE
          ch.date >= (NOW() - {FAST_VIEW_DAYS} * INTERVAL ''1 day'')::date
          AND mb.advertiserid = ' || :advertiser_id || '
        """
        for table, date_expression in (
            (
                f"camphistory_{feature}",
                "timezone(mb.timezone, timezone(''UTC'', "
                "ch.date + ch.hour * INTERVAL ''1 hour''))::date",
            ),
            (f"ch_tz_{feature}", "ch.date"),
        )
    )
    query = f"""
      WITH hourly AS ({hourly})
      SELECT
        advertiserid,
        campcode,
        date,
        "{feature}",
        SUM(COALESCE(impressions, 0))::int,
        SUM(COALESCE(clicks, 0))::int,
        SUM(COALESCE(revenue, 0)),
        SUM(COALESCE(revenueincurrency, 0)),
        SUM(COALESCE(cost, 0)),
        SUM(COALESCE(costincurrency, 0))
      FROM hourly
      GROUP BY 1, 2, 3, 4
    """
    view = dblink_view(
        f"atom_ch_{column}",
        query,
        (
            f"customer_id int, camp_code int, time_tz timestamptz, {column} {pg_type}, "
            "impressions int, clicks int, revenue real, revenue_in_currency real, "
            "cost real, cost_in_currency real"
        ),
    )
    view["cardinality"] = cardinality
    return view


CAMPHISTORY_VIEWS = [
    camphistory_view("osid", "os_id", "int", 50),
    camphistory_view("browserid", "browser_id", "int", 80),
    camphistory_view("bannercode", "banner_code", "int", 5000),
    camphistory_view("city", "city", "text", 20000),
]

# Every camphistory view, ascending by cardinality
ALL_CAMPHISTORY: List[str] = [view["name"] for view in CAMPHISTORY_VIEWS]

DIMENSION_VIEWS = [
    dblink_view(
        "atom_camps",
        """
        SELECT
          mb.campcode,
          mb.name,
          f.campcode,
          f.name,
          o.campcode,
          o.name
        FROM public.campaigns AS mb
        JOIN public.campaigns AS f ON f.campcode = mb.flightid
        JOIN public.campaigns AS o ON o.campcode = mb.offerid
        WHERE
          mb.flightid <> 0
          AND mb.offerid <> 0
        """,
        "camp_code int, camp_name text, flight_code int, flight_name text, "
        "offer_code int, offer_name text",
    ),
    dblink_view(
        "atom_os",
        "SELECT osid, osname FROM public.os",
        "os_id int, os_name text",
    ),
    dblink_view(
        "atom_browsers",
        "SELECT browserid, browsername FROM public.browsers",
        "browser_id int, browser_name text",
    ),
    dblink_view(
        "atom_banners",
        """
        SELECT
          bannercode,
          bannername,
          imgwidth || ''x'' || imgheight
        FROM public.banners
        """,
        "banner_code int, banner_name text, banner_size text",
    ),
    dblink_view(
        "atom_segments",
        """
        SELECT
          s.id,
          COALESCE(sn.name, s.name, s.id::text),
          s.unique_user
        FROM public.segment AS s
        LEFT JOIN public.segment_name AS sn ON sn.segment_id = s.id
        WHERE s.customer = ' || :agency_id || '
        """,
        "user_segment_id int, user_segment_name text, user_segment_size int",
    ),
    {
        "name": "locus_camps",
        "alias": "locus_camps",
        "query": """
          SELECT
            camp_id AS camp_code,
            name AS camp_name
          FROM public.camps
          WHERE advertiser_id = :agency_id
        """,
    },
]


def join(view: str, column: str) -> Dict[str, Any]:
    """
    Left join a dimension view on a column of the same name.
    """
    return {"target_view": view, "left_column": column, "right_column": column}


def dimension(
    view: str,
    column: str,
    key: str,
    category: str = "String",
) -> Dict[str, Any]:
    """
    A column read from a dimension view, stored as its join key.
    """
    return {
        "category": category,
        "depends_on": [key],
        "presentation_expression": f"{view}.{column}",
        "joins_required": [join(view, key)],
    }


def hashed(column: str) -> Dict[str, Any]:
    """
    An identifier stored as a truncated hash of the raw value.
    """
    return {
        "category": "String",
        "storage_type": "text",
        "source_expression": (
            f"substr(to_hex(sha256(cast({column} AS varbinary))), 1, 20)"
        ),
    }


def measure(**extra: Any) -> Dict[str, Any]:
    """
    A numeric aggregate available in every camphistory view.
    """
    return {
        "category": "Numeric",
        "storage_type": "double precision",
        "is_aggregate": True,
        "fast_view_candidates": ALL_CAMPHISTORY,
        **extra,
    }


COMMON_COLUMNS: Dict[str, Dict[str, Any]] = {
    "date": {
        "category": "Date",
        "storage_type": "date",
        "presentation_expression": "log.time_tz::date",
    },
    "fsa": {
        "category": "String",
        "geo_type": "ca-fsa",
        "storage_type": "text",
        "source_expression": "postal_code",
    },
    "user_ip": hashed("ip"),
    "user_id": hashed("user_guid"),
    "hh_id": hashed("hh_id"),
    "hh_fsa": {"category": "String", "geo_type": "ca-fsa", "storage_type": "text"},
    "os_id": {"category": "Numeric", "storage_type": "int"},
    "os_name": dimension("atom_os", "os_name", "os_id"),
    "browser_id": {"category": "Numeric", "storage_type": "int"},
    "browser_name": dimension("atom_browsers", "browser_name", "browser_id"),
    "city": {"category": "String", "storage_type": "text"},
}

IMPRESSION_COLUMNS: Dict[str, Dict[str, Any]] = {
    **COMMON_COLUMNS,
    "date": {**COMMON_COLUMNS["date"], "fast_view_candidates": ALL_CAMPHISTORY},
    "camp_code": {
        "category": "Numeric",
        "storage_type": "int",
        "fast_view_candidates": ALL_CAMPHISTORY,
    },
    "camp_name": dimension("atom_camps", "camp_name", "camp_code"),
    "flight_code": dimension("atom_camps", "flight_code", "camp_code", "Numeric"),
    "flight_name": dimension("atom_camps", "flight_name", "camp_code"),
    "offer_code": dimension("atom_camps", "offer_code", "camp_code", "Numeric"),
    "offer_name": dimension("atom_camps", "offer_name", "camp_code"),
    "os_id": {**COMMON_COLUMNS["os_id"], "fast_view_candidates": ["atom_ch_os_id"]},
    "browser_id": {
        **COMMON_COLUMNS["browser_id"],
        "fast_view_candidates": ["atom_ch_browser_id"],
    },
    "city": {**COMMON_COLUMNS["city"], "fast_view_candidates": ["atom_ch_city"]},
    "banner_code": {
        "category": "Numeric",
        "storage_type": "int",
        "fast_view_candidates": ["atom_ch_banner_code"],
    },
    "banner_name": dimension("atom_banners", "banner_name", "banner_code"),
    "banner_size": dimension("atom_banners", "banner_size", "banner_code"),
    "user_segment_id": {
        "category": "Numeric",
        "storage_type": "int",
        "source_expression": "segment_id",
        "cross_join_clause": "CROSS JOIN UNNEST(segments) AS s (segment_id)",
    },
    "user_segment_name": dimension(
        "atom_segments",
        "user_segment_name",
        "user_segment_id",
    ),
    "app_platform_id": {
        "category": "Numeric",
        "storage_type": "smallint",
        "source_expression": "COALESCE(app_platform_id, 0)",
    },
    "app_platform_name": {
        "category": "String",
        "depends_on": ["app_platform_id"],
        "presentation_expression": (
            "CASE log.app_platform_id WHEN 1 THEN 'Android' WHEN 2 THEN 'iOS' "
            "ELSE 'Unknown/Browser' END"
        ),
    },
    "impressions": measure(source_expression="count(*)", storage_type="int"),
    "clicks": measure(source_expression="count_if(click)", storage_type="int"),
    "revenue": measure(access_tier=2),
    "revenue_in_currency": measure(access_tier=2),
    "spend": {"alias_for": "revenue", "access_tier": 1},
    "spend_in_currency": {"alias_for": "revenue_in_currency", "access_tier": 1},
    "cost": measure(access_tier=2),
    "cost_in_currency": measure(access_tier=2),
}

BEACON_COLUMNS: Dict[str, Dict[str, Any]] = {
    **COMMON_COLUMNS,
    "camp_code": {"category": "Numeric", "storage_type": "int"},
    "camp_name": dimension("locus_camps", "camp_name", "camp_code"),
    "beacon_id": {"category": "Numeric", "storage_type": "int"},
    "vendor": {"category": "String", "storage_type": "text"},
    "type": {"category": "String", "storage_type": "text"},
    "impressions": {
        "category": "Numeric",
        "storage_type": "int",
        "source_expression": "count(*)",
        "is_aggregate": True,
    },
}


@lru_cache
def default_catalog() -> Catalog:
    """
    Build and validate the bundled catalog.
    """
    return Catalog.model_validate(
        {
            "log_types": {
                "imp": {
                    "id": "imp",
                    "display_name": "ATOM Impressions",
                    "source_table": "fusion_logs.impression_logs",
                    "owner_kind": "advertiser",
                    "columns": IMPRESSION_COLUMNS,
                },
                "bcn": {
                    "id": "bcn",
                    "display_name": "LOCUS Beacons",
                    "source_table": "fusion_logs.beacon_logs",
                    "owner_kind": "agency",
                    "columns": BEACON_COLUMNS,
                },
            },
            "views": {
                view["name"]: view for view in CAMPHISTORY_VIEWS + DIMENSION_VIEWS
            },
        },
    )
