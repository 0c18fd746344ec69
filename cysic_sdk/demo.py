from __future__ import annotations
import os
import sys
import logging

import grpc

from cysic_sdk import keystore
from cysic_sdk.client import Client
from cysic_sdk.config import ChainConfig, chain_info, chain_list
from cysic_sdk.connector import rpc_error_message
from cysic_sdk.errors import CysicError
from cysic_sdk.keys import Signer, create_hd_path
from cysic_sdk.tx import TxState
from cysic_sdk.utils import from_display, to_display


# Prints out item selection menu
def print_item_menu(items):
  for i, item in enumerate(items):
    print(f'[{i}] {item}')


# Asks the user to select one item from a list of items
def select_item(items):
  selection = int(input(f'Enter a single index from 0 to {len(items) - 1}: '))
  if selection < 0 or selection >= len(items):
    raise ValueError('index selection out of range')
  return items[selection]


# Asks the user to enter a token quantity, returned in smallest units
def select_amount(decimals: int) -> int:
  selection = input('Enter a number: ').strip()
  return from_display(selection, decimals)


# Asks the user to confirm (y/n)
def confirm():
  text = input('Enter "y" to confirm: ').strip().lower()
  return text == 'y' or text == 'yes'


# Selects a chain from the chain parameter file
def select_chain():
  chains = chain_list(show_hidden=True)
  print('> Select a chain')
  print_item_menu(chains)
  chain = select_item(chains)
  print(f'> Chain selected: {chain}')
  return chain


# Derives the signer for an account index from the encrypted mnemonic
def load_signer(chain: str, config: ChainConfig) -> Signer:
  mnemonic = keystore.decrypt_mnemonic(input('Password: ').strip())
  index = int(input('Account index: ') or 0)
  hd_path = create_hd_path(chain_info(chain)['derivationCoinType'], 0, index)
  return Signer.from_mnemonic(mnemonic, '', hd_path, prefix=config.acc_prefix)


# Asks the user to pick one of the validators on chain
def select_validator(client: Client) -> str:
  validators, _ = client.get_validator_list(0, 100)
  if len(validators) == 0:
    raise ValueError('no validators on chain')
  print('> Select a validator')
  print_item_menu([f'{v.description.moniker} ({v.operator_address})' for v in validators])
  return select_item(validators).operator_address


def show_balances(client: Client, signer: Signer) -> None:
  coins = client.get_balance_list(signer.cosmos_address)
  text = ', '.join(f'{to_display(coin.amount, client.config.decimals)}{coin.denom}' for coin in coins)
  print(f'addr: {signer.cosmos_address} balance: {text or "0"}')


def show_validators(client: Client) -> None:
  validators, total = client.get_validator_list(0, 100)
  print(f'validators ({total}):')
  for v in validators:
    print(f'{v.description.moniker}({v.operator_address}): {v.tokens}')


def show_delegations(client: Client, signer: Signer) -> None:
  delegations = client.query_delegator_delegations(signer.cosmos_address)
  if len(delegations) == 0:
    print('No tokens have been delegated to a validator.')
  for validator, coins in delegations.items():
    for coin in coins:
      print(f'{validator}: {to_display(coin.amount, client.config.decimals)} {coin.denom}')


def show_rewards(client: Client, signer: Signer) -> None:
  for coin in client.query_delegate_reward(signer.cosmos_address):
    print(f'reward: {to_display(coin.amount, client.config.decimals)} {coin.denom}')


# Waits for a broadcast transaction and prints the outcome
def wait_and_print(client: Client, txhash: str) -> None:
  print(f'Transaction sent: {txhash}')
  status = client.wait_tx_packed(txhash)
  if status.state == TxState.INCLUDED:
    print(f'Transaction included at height {status.height} with code {status.code}.')
  elif status.state == TxState.PENDING:
    print(f'Transaction not included after {status.attempts} attempts, check again later.')
  else:
    print(f'Transaction lookup failed: {status.error}')


def send(client: Client, signer: Signer) -> None:
  to_addr = input('Destination address: ').strip()
  amount = select_amount(client.config.decimals)
  print(f'> Sending {to_display(amount)} {client.config.gas_coin} to {to_addr}')
  if not confirm():
    print('Exiting: User rejected transaction.')
    return
  wait_and_print(client, client.send(signer, to_addr, client.config.gas_coin, amount))


def delegate(client: Client, signer: Signer, undelegate: bool = False) -> None:
  validator = select_validator(client)
  amount = select_amount(client.config.decimals)
  action = 'Undelegating' if undelegate else 'Delegating'
  print(f'> {action} {to_display(amount)} {client.config.gov_token} with {validator}')
  if not confirm():
    print('Exiting: User rejected transaction.')
    return
  if undelegate:
    txhash = client.undelegate_cgt(signer, validator, amount)
  else:
    txhash = client.delegate_cgt(signer, validator, amount)
  wait_and_print(client, txhash)


def claim_rewards(client: Client, signer: Signer) -> None:
  for validator in client.query_delegator_delegations(signer.cosmos_address):
    print(f'Claiming rewards from validator {validator}...')
    wait_and_print(client, client.withdraw_delegator_reward(signer, validator))


def exchange(client: Client, signer: Signer, to_gov: bool) -> None:
  amount = select_amount(client.config.decimals)
  if to_gov:
    print(f'> Exchanging {to_display(amount)} {client.config.platform_token} to {client.config.gov_token}')
  else:
    print(f'> Exchanging {to_display(amount)} {client.config.gov_token} to {client.config.platform_token}')
  if not confirm():
    print('Exiting: User rejected transaction.')
    return
  if to_gov:
    txhash = client.exchange_to_gov_token(signer, amount)
  else:
    txhash = client.exchange_to_platform_token(signer, amount)
  wait_and_print(client, txhash)


def encrypt_mnemonic() -> None:
  key = input('Password: ').strip()
  key_conf = input('Confirm password: ').strip()
  if key != key_conf:
    print('Exiting: passwords do not match.')
    return
  keystore.encrypt_mnemonic(key, input('Mnemonic phrase: '))


# Main interactive menu
def main_menu(client: Client, signer: Signer) -> None:
  options = [
    'Show addresses',
    'Show balances',
    'Show validators',
    'Show delegations',
    'Show rewards',
    'Send',
    'Delegate CGT',
    'Undelegate CGT',
    'Claim rewards',
    'Exchange to CGT',
    'Exchange to CYS',
    'Exit',
  ]
  print('> Choose an option')
  print_item_menu(options)
  opt = select_item(options)
  if opt == 'Show addresses':
    print(f'signer: {signer.eth_address} , cosmos: {signer.cosmos_address}')
  elif opt == 'Show balances':
    show_balances(client, signer)
  elif opt == 'Show validators':
    show_validators(client)
  elif opt == 'Show delegations':
    show_delegations(client, signer)
  elif opt == 'Show rewards':
    show_rewards(client, signer)
  elif opt == 'Send':
    send(client, signer)
  elif opt == 'Delegate CGT':
    delegate(client, signer)
  elif opt == 'Undelegate CGT':
    delegate(client, signer, undelegate=True)
  elif opt == 'Claim rewards':
    claim_rewards(client, signer)
  elif opt == 'Exchange to CGT':
    exchange(client, signer, to_gov=True)
  elif opt == 'Exchange to CYS':
    exchange(client, signer, to_gov=False)
  elif opt == 'Exit':
    sys.exit(0)


# Runs one round of the main menu, reporting failures without leaving the loop
def run_menu(client: Client, signer: Signer) -> None:
  try:
    main_menu(client, signer)
  except grpc.RpcError as e:
    print(f'Error: {rpc_error_message(e)}')
  except (CysicError, ValueError) as e:
    print(f'Error: {e}')


def main() -> None:
  logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
  if not os.path.exists(keystore.MNEMONIC):
    print('> No encrypted mnemonic found, creating one')
    encrypt_mnemonic()
  chain = select_chain()
  config = ChainConfig.from_chain_list(chain)
  signer = load_signer(chain, config)
  with Client(config) as client:
    while True:
      run_menu(client, signer)


if __name__ == '__main__':
  main()
