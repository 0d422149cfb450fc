"""
Unit Tests for Collection Routes API Endpoints
"""
import uuid
import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient


def route_payload(community_id: str, **overrides) -> dict:
    payload = {
        'name': 'North Loop',
        'communities': [community_id],
        'schedule': {'days': ['Monday', 'Thursday'], 'startTime': '07:30', 'endTime': '11:00'},
        'wasteTypes': ['general', 'recyclable'],
        'vehicle': {'vehicleId': 'nl-1', 'type': 'truck', 'capacity': 4000},
        'waypoints': [
            {'name': 'B', 'order': 2, 'coordinates': {'latitude': 0.0, 'longitude': 1.0}},
            {'name': 'A', 'order': 1, 'coordinates': {'latitude': 0.0, 'longitude': 0.0}},
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateRoute:
    @pytest.mark.asyncio
    async def test_admin_creates(self, client: AsyncClient, community, admin_auth_headers):
        response = await client.post('/api/routes', headers=admin_auth_headers, json=route_payload(community.id))

        assert response.status_code == 201
        route = response.json()['data']['route']
        assert route['communities'] == [community.id]
        assert route['schedule']['days'] == ['monday', 'thursday']
        assert route['schedule']['estimatedDuration'] == 210
        assert route['scheduleDisplay'] == 'Mon, Thu (07:30 - 11:00)'
        assert route['vehicle']['vehicleId'] == 'NL-1'
        assert [w['name'] for w in route['waypoints']] == ['A', 'B']
        assert route['estimatedDistance'] == pytest.approx(111.19, abs=0.01)
        assert route['maxPickupsPerDay'] == 50
        assert route['efficiencyRating'] == 'N/A'

    @pytest.mark.asyncio
    async def test_end_before_start(self, client: AsyncClient, community, admin_auth_headers):
        payload = route_payload(community.id, schedule={'days': ['monday'], 'startTime': '12:00', 'endTime': '08:00'})

        response = await client.post('/api/routes', headers=admin_auth_headers, json=payload)

        assert response.status_code == 400
        assert response.json()['message'] == 'End time must be after start time'

    @pytest.mark.asyncio
    async def test_unknown_community(self, client: AsyncClient, admin_auth_headers):
        response = await client.post('/api/routes', headers=admin_auth_headers, json=route_payload(str(uuid.uuid4())))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_user_cannot_create(self, client: AsyncClient, community, auth_headers):
        response = await client.post('/api/routes', headers=auth_headers, json=route_payload(community.id))

        assert response.status_code == 403


class TestReadRoutes:
    @pytest.mark.asyncio
    async def test_user_sees_routes_of_own_community(
        self, client: AsyncClient, route, other_community, admin_auth_headers, auth_headers
    ):
        await client.post('/api/routes', headers=admin_auth_headers,
                          json=route_payload(other_community.id, name='Elsewhere'))

        response = await client.get('/api/routes', headers=auth_headers)

        assert [r['id'] for r in response.json()['data']['routes']] == [route.id]

    @pytest.mark.asyncio
    async def test_user_cannot_read_foreign_route(self, client: AsyncClient, route, outsider, headers_for):
        response = await client.get(f'/api/routes/{route.id}', headers=headers_for(outsider))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_available_routes_with_slots(self, client: AsyncClient, route, auth_headers, pickup_data):
        await client.post('/api/pickups', headers=auth_headers, json=pickup_data())
        day = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()

        response = await client.get('/api/routes/available', headers=auth_headers,
                                    params={'date': day, 'wasteType': 'recyclable'})

        routes = response.json()['data']['routes']
        assert [r['id'] for r in routes] == [route.id]
        assert routes[0]['availableSlots'] == 1

    @pytest.mark.asyncio
    async def test_earliest_route_is_assigned_first(
        self, client: AsyncClient, community, admin_auth_headers, auth_headers, pickup_data
    ):
        every_day = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']
        late = await client.post('/api/routes', headers=admin_auth_headers, json=route_payload(
            community.id, name='Late', wasteTypes=['recyclable'],
            schedule={'days': every_day, 'startTime': '10:00', 'endTime': '12:00'},
        ))
        early = await client.post('/api/routes', headers=admin_auth_headers, json=route_payload(
            community.id, name='Early', wasteTypes=['recyclable'],
            schedule={'days': every_day, 'startTime': '8:00', 'endTime': '9:30'},
        ))
        early_route = early.json()['data']['route']
        assert early_route['schedule']['startTime'] == '08:00'
        assert late.status_code == 201

        created = await client.post('/api/pickups', headers=auth_headers, json=pickup_data())

        assert created.json()['data']['pickup']['routeId'] == early_route['id']

    @pytest.mark.asyncio
    async def test_no_route_for_waste_type_not_collected(
        self, client: AsyncClient, community, admin_auth_headers, auth_headers
    ):
        await client.post('/api/routes', headers=admin_auth_headers, json=route_payload(
            community.id,
            schedule={'days': ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'],
                      'startTime': '08:00', 'endTime': '09:00'},
            wasteTypes=['general'],
        ))

        response = await client.get('/api/routes/available', headers=auth_headers, params={
            'date': datetime.now(timezone.utc).isoformat(),
            'wasteType': 'hazardous',
        })

        assert response.json()['data']['routes'] == []

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, route, admin_auth_headers):
        response = await client.get('/api/routes/stats/overview', headers=admin_auth_headers)

        overview = response.json()['data']['overview']
        assert overview['totalRoutes'] == 1
        assert overview['activeRoutes'] == 1


class TestUpdateRoute:
    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient, route, admin_auth_headers):
        url = f'/api/routes/{route.id}'

        updated = await client.put(url, headers=admin_auth_headers, json={
            'status': 'maintenance',
            'maxPickupsPerDay': 30,
        })
        assert updated.status_code == 200
        assert updated.json()['data']['route']['status'] == 'maintenance'
        assert updated.json()['data']['route']['maxPickupsPerDay'] == 30

        deleted = await client.delete(url, headers=admin_auth_headers)
        assert deleted.json()['message'] == 'Route deleted successfully'
        assert (await client.get(url, headers=admin_auth_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_inactive_route_is_not_assigned(self, client: AsyncClient, route, admin_auth_headers,
                                                  auth_headers, pickup_data):
        await client.put(f'/api/routes/{route.id}', headers=admin_auth_headers, json={'status': 'inactive'})

        created = await client.post('/api/pickups', headers=auth_headers, json=pickup_data())

        assert created.json()['data']['pickup']['routeId'] is None
