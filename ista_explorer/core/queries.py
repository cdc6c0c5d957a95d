"""
SQL text used by the application itself: the sample queries offered to the
operator and the fixed dashboard aggregates. Everything here is read-only.
"""

from ista_explorer.core.schemas import SampleQuery


# =========================
# Sample queries
# =========================
SAMPLE_QUERIES = [
    SampleQuery(
        label="List 10 Tourists",
        sql="SELECT * FROM ista.tourist LIMIT 10;",
    ),
    SampleQuery(
        label="Upcoming Missions",
        sql="""SELECT m.mission_id, p.name AS planet, m.departure_date
FROM ista.mission m
JOIN ista.planet p ON m.planet_id=p.planet_id
WHERE m.departure_date BETWEEN CURRENT_DATE AND CURRENT_DATE + INTERVAL '1 year'
ORDER BY m.departure_date;""",
    ),
    SampleQuery(
        label="Bookings by Planet",
        sql="""SELECT p.name AS planet, COUNT(*) AS total_bookings
FROM ista.booking b
JOIN ista.mission m ON b.mission_id=m.mission_id
JOIN ista.planet p ON m.planet_id=p.planet_id
GROUP BY p.name
ORDER BY total_bookings DESC;""",
    ),
    SampleQuery(
        label="Crew >3 Missions",
        sql="""SELECT c.name, COUNT(*) AS missions
FROM ista.crewassignment ca
JOIN ista.crewmember c ON ca.crew_id=c.crew_id
GROUP BY c.name
HAVING COUNT(*)>3
ORDER BY missions DESC;""",
    ),
    SampleQuery(
        label="Maintenance Logs",
        sql="""SELECT ml.log_id, s.model, ml.log_date
FROM ista.maintenancelog ml
JOIN ista.spacecraft s ON ml.spacecraft_id=s.spacecraft_id
ORDER BY ml.log_date DESC
LIMIT 5;""",
    ),
]


# =========================
# Dashboard aggregates
# =========================
BOOKINGS_BY_PLANET = """SELECT p.name AS planet, COUNT(*) AS total_bookings
FROM ista.booking b
JOIN ista.mission m ON b.mission_id=m.mission_id
JOIN ista.planet p ON m.planet_id=p.planet_id
GROUP BY p.name
ORDER BY total_bookings DESC;"""

MISSIONS_BY_MONTH = """SELECT to_char(DATE_TRUNC('month', departure_date),'YYYY-MM') AS month,
  COUNT(*) AS missions
FROM ista.mission
GROUP BY 1
ORDER BY 1;"""

CREW_BY_ROLE = """SELECT cm.role, COUNT(ca.assignment_id) AS assignments
FROM ista.crewassignment ca
JOIN ista.crewmember cm ON ca.crew_id=cm.crew_id
GROUP BY cm.role
ORDER BY assignments DESC;"""

TOURIST_AGE_BY_DECADE = """SELECT floor(date_part('year', age(dob))/10)*10 AS decade,
  COUNT(*) AS count
FROM ista.tourist
GROUP BY 1
ORDER BY 1;"""
