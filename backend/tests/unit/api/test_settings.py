"""
Unit Tests for Settings API Endpoints
"""
import pytest
from httpx import AsyncClient


class TestUserSettings:
    @pytest.mark.asyncio
    async def test_defaults(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/settings/user', headers=auth_headers)

        assert response.status_code == 200
        settings = response.json()['data']['settings']
        assert settings['preferences']['theme'] == 'light'
        assert settings['notifications']['frequency'] == 'daily'
        assert settings['privacy']['profileVisibility'] == 'community'

    @pytest.mark.asyncio
    async def test_update_merges(self, client: AsyncClient, auth_headers):
        response = await client.put('/api/settings/user', headers=auth_headers, json={
            'preferences': {'theme': 'dark'},
            'notifications': {'frequency': 'weekly'},
            'privacy': {'dataSharing': True},
        })

        assert response.json()['message'] == 'Settings updated successfully'
        settings = response.json()['data']['settings']
        assert settings['preferences']['theme'] == 'dark'
        assert settings['preferences']['language'] == 'en'
        assert settings['notifications']['frequency'] == 'weekly'
        assert settings['notifications']['pickupReminders'] is True
        assert settings['privacy']['dataSharing'] is True

        again = await client.get('/api/settings/user', headers=auth_headers)
        assert again.json()['data']['settings']['preferences']['theme'] == 'dark'

    @pytest.mark.asyncio
    async def test_invalid_theme(self, client: AsyncClient, auth_headers):
        response = await client.put('/api/settings/user', headers=auth_headers,
                                    json={'preferences': {'theme': 'neon'}})

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'preferences.theme'


class TestSystemSettings:
    @pytest.mark.asyncio
    async def test_admin_reads_defaults(self, client: AsyncClient, admin_auth_headers):
        response = await client.get('/api/settings/system', headers=admin_auth_headers)

        settings = response.json()['data']['settings']
        assert set(settings) == {'general', 'notifications', 'backup', 'security', 'analytics'}
        assert settings['general']['siteName'] == 'EcoWasteConnect'

    @pytest.mark.asyncio
    async def test_update_section(self, client: AsyncClient, admin_auth_headers):
        first = await client.put('/api/settings/system', headers=admin_auth_headers, json={
            'general': {'maintenanceMode': True},
        })
        second = await client.put('/api/settings/system', headers=admin_auth_headers, json={
            'general': {'siteName': 'Springfield Waste'},
            'security': {'sessionTimeout': 12},
        })

        assert first.status_code == 200
        settings = second.json()['data']['settings']
        assert settings['general']['maintenanceMode'] is True
        assert settings['general']['siteName'] == 'Springfield Waste'
        assert settings['security']['sessionTimeout'] == 12
        assert settings['security']['maxLoginAttempts'] == 5

    @pytest.mark.asyncio
    async def test_bounds_are_validated(self, client: AsyncClient, admin_auth_headers):
        response = await client.put('/api/settings/system', headers=admin_auth_headers,
                                    json={'security': {'passwordMinLength': 3}})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_user_is_rejected(self, client: AsyncClient, auth_headers):
        read = await client.get('/api/settings/system', headers=auth_headers)
        write = await client.put('/api/settings/system', headers=auth_headers, json={'general': {'siteName': 'X'}})

        assert read.status_code == 403
        assert write.status_code == 403


class TestCommunitySettings:
    @pytest.mark.asyncio
    async def test_community_admin_updates(self, client: AsyncClient, community, community_admin, headers_for):
        url = f'/api/settings/community/{community.id}'
        headers = headers_for(community_admin)

        response = await client.put(url, headers=headers, json={
            'settings': {'requireApproval': True},
            'pickupSchedule': {'organic': {'days': ['Friday']}},
            'contactInfo': {'phone': '555-0100'},
        })

        assert response.status_code == 200
        settings = response.json()['data']['settings']
        assert settings['basic']['name'] == community.name
        assert settings['settings']['requireApproval'] is True
        assert settings['settings']['allowUserRegistration'] is True
        assert settings['pickupSchedule']['organic']['days'] == ['friday']
        assert settings['pickupSchedule']['recycling']['days'] == ['tuesday', 'saturday']
        assert settings['contactInfo']['phone'] == '555-0100'

        read = await client.get(url, headers=headers)
        assert read.json()['data']['settings']['settings']['requireApproval'] is True

    @pytest.mark.asyncio
    async def test_member_cannot_manage(self, client: AsyncClient, community, auth_headers):
        response = await client.get(f'/api/settings/community/{community.id}', headers=auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_community(self, client: AsyncClient, admin_auth_headers):
        response = await client.get('/api/settings/community/00000000-0000-0000-0000-000000000000',
                                    headers=admin_auth_headers)

        assert response.status_code == 404


class TestAppInfo:
    @pytest.mark.asyncio
    async def test_public(self, client: AsyncClient):
        response = await client.get('/api/settings/app-info')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['name'] == 'EcoWasteConnect'
        assert data['environment'] == 'testing'
        assert data['demoMode'] is False
