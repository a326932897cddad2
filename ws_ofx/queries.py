"""GraphQL documents sent to the Wealthsimple API."""

ACTIVITY_FEED_ITEM_FRAGMENT = """
fragment Activity on ActivityFeedItem {
  accountId
  externalCanonicalId
  amount
  amountSign
  occurredAt
  type
  subType
  eTransferEmail
  eTransferName
  assetSymbol
  assetQuantity
  aftOriginatorName
  aftTransactionCategory
  aftTransactionType
  canonicalId
  currency
  identityId
  institutionName
  p2pHandle
  p2pMessage
  spendMerchant
  securityId
  billPayCompanyName
  billPayPayeeNickname
  redactedExternalAccountNumber
  opposingAccountId
  status
  strikePrice
  contractType
  expiryDate
  chequeNumber
  provisionalCreditAmount
  primaryBlocker
  interestRate
  frequency
  counterAssetSymbol
  rewardProgram
  counterPartyCurrency
  counterPartyCurrencyAmount
  counterPartyName
  fxRate
  fees
  reference
}
"""

# Used by the account-details page.
FETCH_ACTIVITY_LIST = (
    """
query FetchActivityList(
  $first: Int!
  $cursor: Cursor
  $accountIds: [String!]
  $types: [ActivityFeedItemType!]
  $subTypes: [ActivityFeedItemSubType!]
  $endDate: Datetime
  $securityIds: [String]
  $startDate: Datetime
  $legacyStatuses: [String]
) {
  activities(
    first: $first
    after: $cursor
    accountIds: $accountIds
    types: $types
    subTypes: $subTypes
    endDate: $endDate
    securityIds: $securityIds
    startDate: $startDate
    legacyStatuses: $legacyStatuses
  ) {
    edges {
      node {
        ...Activity
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""
    + ACTIVITY_FEED_ITEM_FRAGMENT
)

# Used by the activity feed page.
FETCH_ACTIVITY_FEED_ITEMS = (
    """
query FetchActivityFeedItems(
  $first: Int
  $cursor: Cursor
  $condition: ActivityCondition
  $orderBy: [ActivitiesOrderBy!] = OCCURRED_AT_DESC
) {
  activityFeedItems(
    first: $first
    after: $cursor
    condition: $condition
    orderBy: $orderBy
  ) {
    edges {
      node {
        ...Activity
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""
    + ACTIVITY_FEED_ITEM_FRAGMENT
)

FETCH_ALL_ACCOUNT_FINANCIALS = """
query FetchAllAccountFinancials(
  $identityId: ID!
  $pageSize: Int = 25
  $cursor: String
) {
  identity(id: $identityId) {
    id
    accounts(filter: {}, first: $pageSize, after: $cursor) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        cursor
        node {
          ...Account
        }
      }
    }
  }
}

fragment Account on Account {
  id
  unifiedAccountType
  nickname
}
"""

FETCH_FUNDS_TRANSFER = """
query FetchFundsTransfer($id: ID!) {
  fundsTransfer: funds_transfer(id: $id, include_cancelled: true) {
    id
    status
    source {
      ...BankAccountOwner
    }
    destination {
      ...BankAccountOwner
    }
  }
}

fragment BankAccountOwner on BankAccountOwner {
  bankAccount: bank_account {
    id
    institutionName: institution_name
    nickname
    ...CaBankAccount
    ...UsBankAccount
  }
}

fragment CaBankAccount on CaBankAccount {
  accountName: account_name
  accountNumber: account_number
}

fragment UsBankAccount on UsBankAccount {
  accountName: account_name
  accountNumber: account_number
}
"""
