"""
Unit Tests for Communities API Endpoints
"""
import pytest
from httpx import AsyncClient

NEW_COMMUNITY = {
    'name': 'Lakeside',
    'description': 'North shore neighbourhoods',
    'address': {'street': '9 Shore Dr', 'city': 'Springfield', 'state': 'IL', 'zipCode': '62702'},
}


class TestCommunityAccess:
    @pytest.mark.asyncio
    async def test_admin_lists_all(self, client: AsyncClient, community, other_community, admin_auth_headers):
        response = await client.get('/api/communities', headers=admin_auth_headers)

        names = {c['name'] for c in response.json()['data']['communities']}
        assert names == {community.name, other_community.name}

    @pytest.mark.asyncio
    async def test_user_lists_own(self, client: AsyncClient, community, other_community, auth_headers):
        response = await client.get('/api/communities', headers=auth_headers)

        assert [c['id'] for c in response.json()['data']['communities']] == [community.id]

    @pytest.mark.asyncio
    async def test_user_cannot_read_other(self, client: AsyncClient, other_community, auth_headers):
        response = await client.get(f'/api/communities/{other_community.id}', headers=auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_read_own(self, client: AsyncClient, community, auth_headers):
        response = await client.get(f'/api/communities/{community.id}', headers=auth_headers)

        body = response.json()['data']['community']
        assert body['name'] == community.name
        assert body['fullAddress'] == '1 River Rd, Springfield, IL, 62701'
        assert body['efficiency'] == 100


class TestCommunityManagement:
    @pytest.mark.asyncio
    async def test_admin_creates(self, client: AsyncClient, admin_auth_headers):
        response = await client.post('/api/communities', headers=admin_auth_headers, json=NEW_COMMUNITY)

        assert response.status_code == 201
        community = response.json()['data']['community']
        assert community['status'] == 'active'
        assert community['pickupSchedule']['recycling']['days'] == ['tuesday', 'saturday']
        assert community['statistics']['totalUsers'] == 0

    @pytest.mark.asyncio
    async def test_duplicate_name_is_case_insensitive(self, client: AsyncClient, community, admin_auth_headers):
        response = await client.post('/api/communities', headers=admin_auth_headers,
                                     json={**NEW_COMMUNITY, 'name': community.name.upper()})

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'name'

    @pytest.mark.asyncio
    async def test_user_cannot_create(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/communities', headers=auth_headers, json=NEW_COMMUNITY)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_community_admin_updates_own(self, client: AsyncClient, community, community_admin, headers_for):
        response = await client.put(f'/api/communities/{community.id}', headers=headers_for(community_admin), json={
            'description': 'Updated',
            'settings': {'requireApproval': True},
        })

        assert response.status_code == 200
        body = response.json()['data']['community']
        assert body['description'] == 'Updated'
        assert body['settings']['requireApproval'] is True
        assert body['settings']['enableNotifications'] is True

    @pytest.mark.asyncio
    async def test_case_only_rename_is_trimmed(self, client: AsyncClient, community, admin_auth_headers):
        response = await client.put(f'/api/communities/{community.id}', headers=admin_auth_headers,
                                    json={'name': f'  {community.name.upper()}  '})

        assert response.status_code == 200
        assert response.json()['data']['community']['name'] == community.name.upper()

    @pytest.mark.asyncio
    async def test_community_admin_cannot_update_other(
        self, client: AsyncClient, other_community, community_admin, headers_for
    ):
        response = await client.put(f'/api/communities/{other_community.id}',
                                    headers=headers_for(community_admin), json={'description': 'Mine now'})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_refresh_statistics(self, client: AsyncClient, community, test_user, other_user, admin_auth_headers):
        response = await client.post(f'/api/communities/{community.id}/statistics', headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()['data']['community']['statistics']['totalUsers'] == 2

    @pytest.mark.asyncio
    async def test_delete_leaves_members_dangling(
        self, client: AsyncClient, community, test_user, headers_for, admin_auth_headers
    ):
        response = await client.delete(f'/api/communities/{community.id}', headers=admin_auth_headers)
        assert response.status_code == 200

        member = await client.get(f'/api/users/{test_user.id}', headers=admin_auth_headers)
        assert member.status_code == 200
        user = member.json()['data']['user']
        assert user['communityId'] == community.id
        assert user['community'] is None

        gone = await client.get(f'/api/communities/{community.id}', headers=admin_auth_headers)
        assert gone.status_code == 404
