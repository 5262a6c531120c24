from datewire.app import main

main()
