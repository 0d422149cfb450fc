"""
Unit Tests for Analytics API Endpoints
"""
import uuid
import pytest
from httpx import AsyncClient


async def completed_pickup(client: AsyncClient, owner_headers: dict, admin_headers: dict,
                           payload: dict, weight: float = 100.0) -> dict:
    created = await client.post('/api/pickups', headers=owner_headers, json=payload)
    pickup_id = created.json()['data']['pickup']['id']
    completed = await client.post(f'/api/pickups/{pickup_id}/complete', headers=admin_headers,
                                  json={'actualWeight': weight})
    assert completed.status_code == 200, completed.text
    return completed.json()['data']['pickup']


class TestOverview:
    @pytest.mark.asyncio
    async def test_admin_overview(self, client: AsyncClient, community, test_user, auth_headers, admin_auth_headers,
                                  pickup_data):
        await completed_pickup(client, auth_headers, admin_auth_headers, pickup_data(), weight=500)

        response = await client.get('/api/analytics/overview', headers=admin_auth_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['totalCommunities'] == 1
        assert data['totalPickups'] == 1
        assert data['wasteCollection']['totalTons'] == 0.5
        assert data['efficiency']['pickupCompletionRate'] == 100
        assert data['topCommunities'][0]['id'] == community.id

    @pytest.mark.asyncio
    async def test_user_overview(self, client: AsyncClient, community, auth_headers, pickup_data):
        await client.post('/api/pickups', headers=auth_headers, json=pickup_data())

        response = await client.get('/api/analytics/overview', headers=auth_headers)

        data = response.json()['data']
        assert data['communityName'] == community.name
        assert data['totalPickups'] == 1
        assert len(data['upcomingPickups']) == 1
        assert data['upcomingPickups'][0]['type'] == 'recyclable'
        assert 'topCommunities' not in data

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get('/api/analytics/overview')

        assert response.status_code == 401


class TestTrends:
    @pytest.mark.asyncio
    async def test_waste_trends_cover_requested_months(
        self, client: AsyncClient, auth_headers, admin_auth_headers, pickup_data
    ):
        await completed_pickup(client, auth_headers, admin_auth_headers, pickup_data(), weight=42)

        response = await client.get('/api/analytics/waste-trends', headers=auth_headers, params={'months': 3})

        data = response.json()['data']
        assert data['period'] == '3months'
        assert len(data['data']) == 3
        assert data['data'][-1]['recyclable'] == 42
        assert data['data'][-1]['total'] == 42
        assert data['trends']['recyclable']['trend'] == 'up'

    @pytest.mark.asyncio
    async def test_months_out_of_range(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/analytics/waste-trends', headers=auth_headers, params={'months': 0})

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'months'

    @pytest.mark.asyncio
    async def test_pickup_stats(self, client: AsyncClient, auth_headers, admin_auth_headers, pickup_data):
        await completed_pickup(client, auth_headers, admin_auth_headers, pickup_data())
        await client.post('/api/pickups', headers=auth_headers, json=pickup_data(wasteType='organic'))

        response = await client.get('/api/analytics/pickup-stats', headers=auth_headers)

        data = response.json()['data']
        assert data['overview']['totalPickups'] == 2
        assert {entry['type'] for entry in data['byWasteType']} == {'recyclable', 'organic'}
        assert len(data['monthlyCompletion']) == 6

    @pytest.mark.asyncio
    async def test_issue_analytics(self, client: AsyncClient, auth_headers, issue_data):
        await client.post('/api/issues', headers=auth_headers, json=issue_data())
        await client.post('/api/issues', headers=auth_headers, json=issue_data(type='damaged_bin'))

        response = await client.get('/api/analytics/issue-analytics', headers=auth_headers)

        data = response.json()['data']
        assert data['overview']['totalIssues'] == 2
        assert data['openIssues'] == 2
        assert data['averageResolutionHours'] is None

    @pytest.mark.asyncio
    async def test_environmental_impact(self, client: AsyncClient, auth_headers, admin_auth_headers, pickup_data):
        await completed_pickup(client, auth_headers, admin_auth_headers, pickup_data(), weight=1000)
        await completed_pickup(client, auth_headers, admin_auth_headers, pickup_data(wasteType='general'), weight=500)

        response = await client.get('/api/analytics/environmental-impact', headers=auth_headers)

        data = response.json()['data']
        assert data['landfillDiverted'] == 1.0
        assert data['co2Saved'] == 0.9
        assert data['treesEquivalent'] == 15
        assert data['energySaved'] == 4000
        assert data['communityRanking']['position'] == 1


class TestReports:
    @pytest.mark.asyncio
    async def test_catalog(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/analytics/reports', headers=auth_headers)

        types = {r['type'] for r in response.json()['data']['reports']}
        assert types == {'pickup_summary', 'waste_analysis', 'issue_report', 'environmental_report'}

    @pytest.mark.asyncio
    async def test_generate_and_download(
        self, client: AsyncClient, community, auth_headers, admin_auth_headers, pickup_data
    ):
        await completed_pickup(client, auth_headers, admin_auth_headers, pickup_data(), weight=75)

        generated = await client.post('/api/analytics/generate-report', headers=auth_headers,
                                      json={'reportType': 'waste_analysis'})

        assert generated.status_code == 201
        data = generated.json()['data']
        report = data['report']
        assert report['communityId'] == community.id
        assert report['summary']['byWasteType']['recyclable'] == 75
        assert data['downloadUrl'].endswith(report['id'])

        downloaded = await client.get(f"/api/analytics/download-report/{report['id']}", headers=auth_headers)
        assert downloaded.json()['data']['report']['id'] == report['id']

    @pytest.mark.asyncio
    async def test_unknown_report_type(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/analytics/generate-report', headers=auth_headers,
                                     json={'reportType': 'everything'})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_generator_downloads(self, client: AsyncClient, auth_headers, other_user, headers_for):
        generated = await client.post('/api/analytics/generate-report', headers=auth_headers,
                                      json={'reportType': 'issue_report'})
        report_id = generated.json()['data']['report']['id']

        response = await client.get(f'/api/analytics/download-report/{report_id}', headers=headers_for(other_user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_report(self, client: AsyncClient, auth_headers):
        response = await client.get(f'/api/analytics/download-report/{uuid.uuid4()}', headers=auth_headers)

        assert response.status_code == 404
